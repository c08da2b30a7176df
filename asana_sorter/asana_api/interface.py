"""
The capability set the sorting workflow needs from Asana.

``AsanaClient`` is the production implementation; tests pass in-memory fakes
with the same methods.
"""
from __future__ import annotations

from typing import List, Protocol

from .data_models import Section, Task, User, UserTaskList, Workspace


class AsanaAPI(Protocol):
    # User methods
    def get_current_user(self) -> User: ...
    def get_workspaces(self) -> List[Workspace]: ...
    def get_user_task_list(self, user_gid: str, workspace_gid: str) -> UserTaskList: ...

    # Section methods
    def get_sections_for_project(self, project_gid: str) -> List[Section]: ...
    def create_section(self, project_gid: str, name: str) -> Section: ...

    # Task methods
    def get_tasks_from_user_task_list(self, user_task_list_gid: str) -> List[Task]: ...
    def get_tasks_in_section(self, section_gid: str) -> List[Task]: ...
    def move_task_to_section(self, section_gid: str, task_gid: str) -> None: ...
