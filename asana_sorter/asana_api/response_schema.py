from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, field_validator

from .data_models import (
    AssigneeSection,
    Section,
    Task,
    User,
    UserTaskList,
    Workspace,
)


class UserModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    gid: str
    name: Optional[str] = None

    def to_user(self) -> User:
        return User(gid=self.gid, name=self.name or "")


class WorkspaceModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    gid: str
    name: Optional[str] = None

    def to_workspace(self) -> Workspace:
        return Workspace(gid=self.gid, name=self.name or "")


class UserTaskListModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    gid: str
    name: Optional[str] = None
    owner: Optional[UserModel] = None
    workspace: Optional[WorkspaceModel] = None

    def to_user_task_list(self) -> UserTaskList:
        return UserTaskList(
            gid=self.gid,
            name=self.name or "",
            owner=self.owner.to_user() if self.owner else None,
            workspace=self.workspace.to_workspace() if self.workspace else None,
        )


class SectionModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    gid: str
    name: Optional[str] = None

    def to_section(self) -> Section:
        return Section(gid=self.gid, name=self.name or "")


class AssigneeSectionModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    gid: Optional[str] = None
    name: Optional[str] = None


class TaskModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    gid: str
    name: Optional[str] = None
    notes: Optional[str] = None
    completed: bool = False
    due_on: Optional[date] = None
    due_at: Optional[datetime] = None
    assignee_section: Optional[AssigneeSectionModel] = None

    @field_validator("due_on", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        """Asana sends null or "" for unset dates."""
        if v == "":
            return None
        return v

    @field_validator("due_at", mode="before")
    @classmethod
    def parse_due_at(cls, v):
        if v == "" or v is None:
            return None
        if isinstance(v, str):
            return isoparse(v)
        return v

    def to_task(self) -> Task:
        section = self.assignee_section or AssigneeSectionModel()
        return Task(
            gid=self.gid,
            name=self.name or "",
            notes=self.notes or "",
            completed=self.completed,
            due_on=self.due_on,
            due_at=self.due_at,
            assignee_section=AssigneeSection(gid=section.gid or "", name=section.name or ""),
        )


class Envelope(BaseModel):
    """Every Asana response wraps its payload in a top-level ``data`` key."""

    model_config = ConfigDict(extra="allow")

    data: Any


class UserEnvelope(Envelope):
    data: UserModel


class WorkspaceListEnvelope(Envelope):
    data: List[WorkspaceModel]


class UserTaskListEnvelope(Envelope):
    data: UserTaskListModel


class SectionEnvelope(Envelope):
    data: SectionModel


class SectionListEnvelope(Envelope):
    data: List[SectionModel]


class TaskListEnvelope(Envelope):
    data: List[TaskModel]
