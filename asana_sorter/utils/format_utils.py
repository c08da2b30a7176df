from enum import Enum
from typing import List, Mapping, Optional

from rich.console import Console
from rich.text import Text

from ..asana_api.data_models import Task, TaskCategory

DATE_FORMAT = "%Y-%m-%d"


class TextStyle(str, Enum):
    header = "bold bright_white"
    section_title = "bold bright_cyan"
    success = "green"
    warning = "yellow"
    error = "bright_red"
    info = "cyan"
    important = "bold"
    subtle = "white"
    task_name = "bright_white"
    section_name = "bright_yellow"
    due_date = "bright_green"
    operation = "magenta"


def format_text(text: str, style: TextStyle, color: bool = True) -> Text:
    """Return *text* styled with *style*, or plain when color is off."""
    return Text(text, style=style.value if color else "")


def make_console(color: bool = True, **kwargs) -> Console:
    return Console(no_color=not color, highlight=False, soft_wrap=True, **kwargs)


def format_task_line(index: int, task: Task, color: bool = True) -> Text:
    """``<index>. <name> (<YYYY-MM-DD>)``; the date part only when due_on is set."""
    line = Text(f"{index}. ")
    line.append_text(format_text(task.name, TextStyle.task_name, color))
    if task.due_on is not None:
        line.append(" (")
        line.append_text(format_text(task.due_on.strftime(DATE_FORMAT), TextStyle.due_date, color))
        line.append(")")
    return line


def display_tasks(
    categorized_tasks: Mapping[TaskCategory, List[Task]],
    category_to_section: Mapping[TaskCategory, str],
    dry_run: bool,
    console: Optional[Console] = None,
    color: bool = True,
) -> None:
    """Print tasks grouped by category, in the order of *category_to_section*."""
    console = console or make_console(color)

    console.print()
    console.print(format_text("My Asana Tasks:", TextStyle.header, color))
    console.print("==============")

    total_tasks = 0
    sections_with_tasks = 0

    for category, section_name in category_to_section.items():
        tasks = categorized_tasks.get(category) or []
        if not tasks:
            continue
        sections_with_tasks += 1
        total_tasks += len(tasks)

        console.print()
        console.print(format_text(f"## {section_name} ({len(tasks)} tasks)", TextStyle.section_title, color))
        for i, task in enumerate(tasks, start=1):
            console.print(format_task_line(i, task, color))

    console.print()
    if total_tasks == 0:
        console.print(format_text("No tasks found in any section", TextStyle.warning, color))
    else:
        console.print(
            format_text(f"Found {total_tasks} tasks in {sections_with_tasks} sections", TextStyle.success, color)
        )

    if dry_run:
        console.print()
        console.print(
            format_text(
                "This was a dry run. To actually move tasks, run without the --dry-run flag.",
                TextStyle.info,
                color,
            )
        )
