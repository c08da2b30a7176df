"""Fetch My Tasks, sort them into due-date sections, and display the result."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from rich.console import Console
from rich.markup import escape

from ..asana_api.client import (
    BASE_URL,
    AsanaClient,
    AsanaError,
    AsanaRequestError,
    Deadline,
    ResponseParseError,
)
from ..asana_api.data_models import Section, Task, TaskCategory, TaskMove, UserTaskList
from ..asana_api.interface import AsanaAPI
from ..asana_api.task_operations import (
    calculate_task_moves,
    categorize_tasks,
    create_ignored_sections_set,
    create_section_name_to_gid_map,
    get_category_to_section_map,
)
from ..utils.config import (
    MissingCredentialError,
    SectionConfig,
    get_access_token,
    get_base_url,
    load_configuration,
)
from ..utils.format_utils import TextStyle, display_tasks, format_text, make_console
from ..utils.logger import get_logger

log = get_logger(__name__)

CategorizedTasks = Dict[TaskCategory, List[Task]]


class OrganizeError(Exception):
    """A step of the sorting run failed; the message names the step."""


class NoWorkspacesError(OrganizeError):
    """The user has no workspace, so there is no task list to sort."""


class TaskMoveError(OrganizeError):
    """One or more moves failed. Raised only after every move was attempted."""

    def __init__(self, failures: List[Tuple[TaskMove, Exception]], categorized_tasks: Optional[CategorizedTasks] = None):
        super().__init__(f"{len(failures)} errors occurred while moving tasks")
        self.failures = failures
        self.categorized_tasks = categorized_tasks or {}


@contextmanager
def fatal_step(description: str):
    try:
        yield
    except AsanaError as e:
        raise OrganizeError(f"error {description}: {e}") from e


def build_client(timeout: Optional[float]) -> AsanaClient:
    """Create the production client bounded by a run deadline of *timeout* seconds."""
    return AsanaClient(get_access_token(), base_url=get_base_url(BASE_URL), deadline=Deadline(timeout))


def resolve_user_task_list(client: AsanaAPI) -> UserTaskList:
    """Current user -> first workspace -> that user's My Tasks list."""
    with fatal_step("getting current user"):
        user = client.get_current_user()
    log.info("Logged in as: [bold]%s[/bold]", escape(user.name))

    with fatal_step("getting workspaces"):
        workspaces = client.get_workspaces()
    if not workspaces:
        raise NoWorkspacesError("no workspaces found for user")

    workspace = workspaces[0]
    log.info("Using workspace: [bold]%s[/bold]", escape(workspace.name))

    with fatal_step("getting user task list"):
        return client.get_user_task_list(user.gid, workspace.gid)


def ensure_required_sections(
    client: AsanaAPI,
    project_gid: str,
    config: SectionConfig,
    sections: List[Section],
    section_name_to_gid: Dict[str, str],
) -> List[Tuple[str, Exception]]:
    """Create any configured section that does not exist yet.

    *sections* and *section_name_to_gid* are updated in place. A failed
    creation is logged and returned; the remaining sections are still tried.
    """
    failures: List[Tuple[str, Exception]] = []
    for section_name in config.required_sections():
        if section_name in section_name_to_gid:
            continue
        log.info("[magenta]Creating section:[/magenta] %s", escape(section_name))
        try:
            new_section = client.create_section(project_gid, section_name)
        except (AsanaRequestError, ResponseParseError) as e:
            log.error("Error creating section '%s': %s", escape(section_name), escape(str(e)))
            failures.append((section_name, e))
            continue
        section_name_to_gid[new_section.name] = new_section.gid
        sections.append(new_section)
    return failures


def execute_task_moves(client: AsanaAPI, task_moves: List[TaskMove]) -> List[Tuple[TaskMove, Exception]]:
    """Perform the moves in order; failures are collected, not raised."""
    if not task_moves:
        log.info("No tasks need to be moved")
        return []

    log.info("Moving tasks to appropriate sections...")
    failures: List[Tuple[TaskMove, Exception]] = []

    for move in task_moves:
        log.info(
            "[magenta]Moving task[/magenta] '%s' to section: %s",
            escape(move.task.name),
            escape(move.section_name),
        )
        try:
            client.move_task_to_section(move.section_gid, move.task.gid)
        except (AsanaRequestError, ResponseParseError) as e:
            log.error("Error moving task '%s': %s", escape(move.task.name), escape(str(e)))
            failures.append((move, e))

    moved = len(task_moves) - len(failures)
    if moved:
        log.info("Moved %d tasks to their appropriate sections", moved)
    return failures


def organize_tasks(
    client: AsanaAPI,
    config: SectionConfig,
    dry_run: bool,
    now: Optional[datetime] = None,
) -> CategorizedTasks:
    """Fetch My Tasks, plan moves, and (unless *dry_run*) apply them.

    Returns the tasks grouped by category for display. Raises
    :class:`OrganizeError` for fatal failures and :class:`TaskMoveError` when
    some moves failed (the returned grouping is attached to it).
    """
    user_task_list = resolve_user_task_list(client)

    with fatal_step("getting sections"):
        sections = client.get_sections_for_project(user_task_list.gid)
    section_name_to_gid = create_section_name_to_gid_map(sections)

    if not dry_run:
        with fatal_step("ensuring required sections"):
            ensure_required_sections(client, user_task_list.gid, config, sections, section_name_to_gid)

    ignored_sections: Set[str] = create_ignored_sections_set(config.ignored_sections)

    log.info("Fetching all tasks from My Tasks list...")
    with fatal_step("getting tasks from user task list"):
        all_tasks = client.get_tasks_from_user_task_list(user_task_list.gid)

    for task in all_tasks:
        section_name = task.assignee_section.name
        if section_name in ignored_sections:
            log.info(
                "Skipping task in ignored section: %s (in section '%s')",
                escape(task.name),
                escape(section_name),
            )

    # One timestamp for both display and planning.
    now = now or datetime.now().astimezone()

    categorized_tasks = categorize_tasks(all_tasks, now)
    task_moves = calculate_task_moves(all_tasks, config, section_name_to_gid, ignored_sections, now)

    if dry_run:
        for move in task_moves:
            log.info("Would move '%s' to section: %s", escape(move.task.name), escape(move.section_name))
        return categorized_tasks

    with fatal_step("executing task moves"):
        failures = execute_task_moves(client, task_moves)
    if failures:
        raise TaskMoveError(failures, categorized_tasks)

    return categorized_tasks


def handle_sort(args, client: Optional[AsanaAPI] = None, console: Optional[Console] = None) -> int:
    """Run the sorter for CLI *args*; returns the process exit code."""
    color = not getattr(args, "no_color", False)
    dry_run = bool(getattr(args, "dry_run", False))
    console = console or make_console(color)
    err_console = make_console(color, stderr=True)

    config = load_configuration(getattr(args, "config", None))
    category_to_section = get_category_to_section_map(config)

    if client is None:
        try:
            client = build_client(getattr(args, "timeout", None))
        except MissingCredentialError as e:
            err_console.print(format_text(f"Error: {e}", TextStyle.error, color))
            return 1

    try:
        categorized_tasks = organize_tasks(client, config, dry_run)
    except TaskMoveError as e:
        display_tasks(e.categorized_tasks, category_to_section, dry_run, console=console, color=color)
        err_console.print(format_text(f"Error: {e}", TextStyle.error, color))
        return 1
    except (OrganizeError, AsanaError) as e:
        err_console.print(format_text(f"Error: {e}", TextStyle.error, color))
        return 1

    display_tasks(categorized_tasks, category_to_section, dry_run, console=console, color=color)
    return 0
