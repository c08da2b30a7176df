"""Read-only views of the sections in My Tasks."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..asana_api.interface import AsanaAPI
from ..asana_api.task_operations import (
    create_section_name_to_gid_map,
    get_category_to_section_map,
    get_task_category,
)
from ..utils.config import MissingCredentialError, load_configuration
from ..utils.format_utils import DATE_FORMAT, TextStyle, format_text, make_console
from .sort_command import OrganizeError, build_client, fatal_step, resolve_user_task_list


def _client_or_none(args, client, err_console, color):
    if client is not None:
        return client
    try:
        return build_client(getattr(args, "timeout", None))
    except MissingCredentialError as e:
        err_console.print(format_text(f"Error: {e}", TextStyle.error, color))
        return None


def handle_list_sections(args, client: Optional[AsanaAPI] = None, console: Optional[Console] = None) -> int:
    """List the sections of My Tasks and what the sorter uses them for."""
    color = not getattr(args, "no_color", False)
    console = console or make_console(color)
    err_console = make_console(color, stderr=True)

    config = load_configuration(getattr(args, "config", None))
    client = _client_or_none(args, client, err_console, color)
    if client is None:
        return 1

    try:
        user_task_list = resolve_user_task_list(client)
        with fatal_step("getting sections"):
            sections = client.get_sections_for_project(user_task_list.gid)
    except OrganizeError as e:
        err_console.print(format_text(f"Error: {e}", TextStyle.error, color))
        return 1

    roles = {name: category.value for category, name in get_category_to_section_map(config).items()}
    ignored = set(config.ignored_sections)

    if not sections:
        console.print("No sections found.")
        return 0

    table = Table(show_header=True, header_style="bold" if color else "")
    table.add_column("GID", style="cyan" if color else "")
    table.add_column("Section", style="bright_yellow" if color else "")
    table.add_column("Used for", style="magenta" if color else "")
    for section in sections:
        if section.name in ignored:
            role = "ignored"
        else:
            role = roles.get(section.name, "")
        table.add_row(section.gid, section.name, role)
    console.print(table)
    console.print(f"\nFound {len(sections)} sections")
    return 0


def handle_section_tasks(args, client: Optional[AsanaAPI] = None, console: Optional[Console] = None) -> int:
    """Show the incomplete tasks of one My Tasks section, looked up by name."""
    color = not getattr(args, "no_color", False)
    console = console or make_console(color)
    err_console = make_console(color, stderr=True)

    client = _client_or_none(args, client, err_console, color)
    if client is None:
        return 1

    section_name = args.section
    try:
        user_task_list = resolve_user_task_list(client)
        with fatal_step("getting sections"):
            sections = client.get_sections_for_project(user_task_list.gid)
        section_gid = create_section_name_to_gid_map(sections).get(section_name)
        if section_gid is None:
            err_console.print(format_text(f"Error: section '{section_name}' not found", TextStyle.error, color))
            return 1
        with fatal_step("getting tasks in section"):
            tasks = client.get_tasks_in_section(section_gid)
    except OrganizeError as e:
        err_console.print(format_text(f"Error: {e}", TextStyle.error, color))
        return 1

    if not tasks:
        console.print(f"No incomplete tasks in '{section_name}'")
        return 0

    now = datetime.now().astimezone()
    table = Table(show_header=True, header_style="bold" if color else "")
    table.add_column("Task", style="bright_white" if color else "")
    table.add_column("Due", style="bright_green" if color else "")
    table.add_column("Category", style="magenta" if color else "")
    for task in tasks:
        due = task.due_on.strftime(DATE_FORMAT) if task.due_on else "-"
        table.add_row(task.name, due, get_task_category(task, now).value)
    console.print(table)
    console.print(f"\nFound {len(tasks)} tasks in '{section_name}'")
    return 0
