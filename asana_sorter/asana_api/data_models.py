"""
Data models representing Asana objects (users, workspaces, sections, tasks).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class TaskCategory(str, Enum):
    overdue = "overdue"
    due_today = "due_today"
    due_this_week = "due_this_week"
    due_later = "due_later"
    no_date = "no_date"


@dataclass(frozen=True)
class User:
    gid: str
    name: str = ""


@dataclass(frozen=True)
class Workspace:
    gid: str
    name: str = ""


@dataclass(frozen=True)
class UserTaskList:
    gid: str
    name: str = ""
    owner: Optional[User] = None
    workspace: Optional[Workspace] = None


@dataclass(frozen=True)
class Section:
    gid: str
    name: str


@dataclass(frozen=True)
class AssigneeSection:
    gid: str = ""
    name: str = ""


@dataclass(frozen=True)
class Task:
    gid: str
    name: str
    notes: str = ""
    completed: bool = False
    due_on: Optional[date] = None
    due_at: Optional[datetime] = None
    assignee_section: AssigneeSection = field(default_factory=AssigneeSection)

    def to_dict(self):
        return {
            "gid": self.gid,
            "name": self.name,
            "notes": self.notes,
            "completed": self.completed,
            "due_on": self.due_on.isoformat() if self.due_on else None,
            "due_at": self.due_at.isoformat() if self.due_at else None,
            "assignee_section": {
                "gid": self.assignee_section.gid,
                "name": self.assignee_section.name,
            },
        }


@dataclass(frozen=True)
class TaskMove:
    """A task that should be moved into another section of My Tasks."""
    task: Task
    section_gid: str
    section_name: str
