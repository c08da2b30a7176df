"""HTTP client for the Asana REST API.

All requests go through :meth:`AsanaClient._request`, which adds the bearer
token, enforces the run :class:`Deadline` and turns every failure into an
:class:`AsanaError` subclass.  Public methods parse the ``{"data": ...}``
envelope into the dataclasses from :mod:`.data_models`.

Errors raised from a public method name the failing operation, e.g.
``failed to get sections for project: API request failed with status 404: ...``.
"""
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Type

import requests
from pydantic import ValidationError

from ..utils.logger import get_logger
from .data_models import Section, Task, User, UserTaskList, Workspace
from .response_schema import (
    Envelope,
    SectionEnvelope,
    SectionListEnvelope,
    TaskListEnvelope,
    UserEnvelope,
    UserTaskListEnvelope,
    WorkspaceListEnvelope,
)

log = get_logger(__name__)

BASE_URL = "https://app.asana.com/api/1.0"
DEFAULT_REQUEST_TIMEOUT = 10.0

QUERY_COMPLETED_SINCE = "completed_since"
QUERY_OPT_FIELDS = "opt_fields"
QUERY_WORKSPACE = "workspace"

TASK_FIELDS = "name,completed,due_on,due_at,notes,assignee_section,assignee_section.name"


class AsanaError(Exception):
    """Base class for every failure while talking to Asana."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.operation: Optional[str] = None

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class AsanaRequestError(AsanaError):
    """The request did not produce a usable HTTP response."""


class AsanaAPIError(AsanaRequestError):
    """Asana answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str, method: str = "", path: str = ""):
        super().__init__(f"API request failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path


class AsanaTransportError(AsanaRequestError):
    """Network-level failure (DNS, connection reset, timeout...)."""


class ResponseParseError(AsanaError):
    """Response body is not JSON or does not match the expected shape."""


class DeadlineExceeded(AsanaError):
    """The overall run deadline expired or the run was cancelled."""


class Deadline:
    """Bounds a whole run; every outbound request checks it first.

    ``timeout=None`` means no deadline, only explicit :meth:`cancel`.
    """

    def __init__(self, timeout: Optional[float] = None, clock=time.monotonic):
        self._clock = clock
        self._expires_at = None if timeout is None else clock() + timeout
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        if self._cancelled:
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        if self._cancelled:
            raise DeadlineExceeded("run cancelled")
        if self.expired:
            raise DeadlineExceeded("deadline exceeded")

    def clamp(self, seconds: float) -> float:
        """Per-request timeout that never outlives the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return seconds
        if remaining <= 0:
            raise DeadlineExceeded("deadline exceeded")
        return min(seconds, remaining)


class AsanaClient:
    """Production implementation of :class:`~.interface.AsanaAPI`."""

    def __init__(
        self,
        token: str,
        base_url: str = BASE_URL,
        session: Optional[requests.Session] = None,
        deadline: Optional[Deadline] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.deadline = deadline or Deadline()
        self.request_timeout = request_timeout

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Execute one request and return the decoded JSON body."""
        self.deadline.check()

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        log.debug("%s %s", method, path)
        try:
            resp = self.session.request(
                method,
                self.base_url + path,
                params=params,
                json=body,
                headers=headers,
                timeout=self.deadline.clamp(self.request_timeout),
            )
        except requests.RequestException as e:
            if self.deadline.expired:
                raise DeadlineExceeded(f"deadline exceeded during {method} {path}") from e
            raise AsanaTransportError(f"HTTP request failed: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise AsanaAPIError(resp.status_code, resp.text, method=method, path=path)

        try:
            return resp.json()
        except ValueError as e:
            raise ResponseParseError(f"failed to decode API response: {e}") from e

    def _call(
        self,
        operation: str,
        envelope: Type[Envelope],
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Envelope:
        try:
            payload = self._request(method, path, params=params, body=body)
            try:
                return envelope.model_validate(payload)
            except ValidationError as e:
                raise ResponseParseError(f"unexpected response shape: {e}") from e
        except AsanaError as e:
            if e.operation is None:
                e.operation = f"failed to {operation}"
            raise

    # ------------------------------------------------------------------
    # Users & workspaces
    # ------------------------------------------------------------------
    def get_current_user(self) -> User:
        env = self._call("get current user", UserEnvelope, "GET", "/users/me")
        return env.data.to_user()

    def get_workspaces(self) -> List[Workspace]:
        env = self._call("get workspaces", WorkspaceListEnvelope, "GET", "/workspaces")
        return [w.to_workspace() for w in env.data]

    def get_user_task_list(self, user_gid: str, workspace_gid: str) -> UserTaskList:
        env = self._call(
            "get user task list",
            UserTaskListEnvelope,
            "GET",
            f"/users/{user_gid}/user_task_list",
            params={QUERY_WORKSPACE: workspace_gid},
        )
        return env.data.to_user_task_list()

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------
    def get_sections_for_project(self, project_gid: str) -> List[Section]:
        env = self._call(
            "get sections for project",
            SectionListEnvelope,
            "GET",
            f"/projects/{project_gid}/sections",
        )
        return [s.to_section() for s in env.data]

    def create_section(self, project_gid: str, name: str) -> Section:
        env = self._call(
            "create section",
            SectionEnvelope,
            "POST",
            f"/projects/{project_gid}/sections",
            body={"data": {"name": name}},
        )
        return env.data.to_section()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def get_tasks_from_user_task_list(self, user_task_list_gid: str) -> List[Task]:
        env = self._call(
            "get tasks from user task list",
            TaskListEnvelope,
            "GET",
            f"/user_task_lists/{user_task_list_gid}/tasks",
            params={QUERY_COMPLETED_SINCE: "now", QUERY_OPT_FIELDS: TASK_FIELDS},
        )
        return [t.to_task() for t in env.data]

    def get_tasks_in_section(self, section_gid: str) -> List[Task]:
        env = self._call(
            "get tasks in section",
            TaskListEnvelope,
            "GET",
            f"/sections/{section_gid}/tasks",
            params={QUERY_COMPLETED_SINCE: "now", QUERY_OPT_FIELDS: TASK_FIELDS},
        )
        return [t.to_task() for t in env.data]

    def move_task_to_section(self, section_gid: str, task_gid: str) -> None:
        self._call(
            "move task to section",
            Envelope,
            "POST",
            f"/sections/{section_gid}/addTask",
            body={"data": {"task": task_gid}},
        )
