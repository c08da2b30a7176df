#!/usr/bin/env python3
import logging
from typing import Optional

import typer

from . import __version__
from .commands.section_command import handle_list_sections, handle_section_tasks
from .commands.sort_command import handle_sort
from .utils.config import load_env_vars, parse_duration
from .utils.logger import configure_logging

DEFAULT_TIMEOUT = "30s"

EPILOG = """\
Configuration: pass --config default, or a JSON file such as
{"overdue": "Overdue", "due_today": "Due today", "due_this_week": "Due within the next 7 days",
"due_later": "Due later", "no_date": "Recently assigned", "ignored_sections": ["Doing Now", "Waiting For"]}

Authentication: export ASANA_ACCESS_TOKEN (or put it in .asana-sorter.env).
Get a personal access token from https://app.asana.com/0/developer-console
"""

# Create app instance
app = typer.Typer(
    name="asana-tasks-sorter",
    help="Asana Tasks Sorter - organize your Asana My Tasks into sections by due date.",
    epilog=EPILOG,
    no_args_is_help=True,
)


def _version_callback(value: bool):
    if value:
        typer.echo(f"asana-tasks-sorter {__version__}")
        raise typer.Exit()


def _timeout_seconds(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP requests and other debug details."),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
):
    """Asana Tasks Sorter - organize your Asana My Tasks into sections by due date."""
    load_env_vars()
    configure_logging(logging.DEBUG if verbose else logging.INFO)


@app.command("sort")
def sort(
    config: str = typer.Option(
        ..., "--config", "-c", help="Path to section configuration file, or 'default' for the built-in defaults."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Only display changes without moving tasks."),
    timeout: str = typer.Option(DEFAULT_TIMEOUT, "--timeout", "-t", help="Timeout for the whole run (e.g. 30s, 1m30s)."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output."),
):
    """Sort My Tasks into Overdue / Due today / This week / Later / No date sections."""
    args = type('Args', (), {
        'config': config,
        'dry_run': dry_run,
        'timeout': _timeout_seconds(timeout),
        'no_color': no_color,
    })
    code = handle_sort(args)
    if code:
        raise typer.Exit(code=code)


@app.command("sections")
def sections(
    config: str = typer.Option("default", "--config", "-c", help="Section configuration file, or 'default'."),
    timeout: str = typer.Option(DEFAULT_TIMEOUT, "--timeout", "-t", help="Timeout for the whole run."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output."),
):
    """List the sections of My Tasks and which category each one holds."""
    args = type('Args', (), {
        'config': config,
        'timeout': _timeout_seconds(timeout),
        'no_color': no_color,
    })
    code = handle_list_sections(args)
    if code:
        raise typer.Exit(code=code)


@app.command("section-tasks")
def section_tasks(
    section: str = typer.Argument(..., help="Name of the My Tasks section."),
    timeout: str = typer.Option(DEFAULT_TIMEOUT, "--timeout", "-t", help="Timeout for the whole run."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output."),
):
    """Show the incomplete tasks in one section of My Tasks."""
    args = type('Args', (), {
        'section': section,
        'timeout': _timeout_seconds(timeout),
        'no_color': no_color,
    })
    code = handle_section_tasks(args)
    if code:
        raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
