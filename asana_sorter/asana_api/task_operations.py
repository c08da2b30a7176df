"""Due-date categorization and move planning for My Tasks.

Both :func:`get_task_category` and :func:`calculate_task_moves` are pure: they
take the reference ``now`` as an argument and never touch the network, so the
same inputs always produce the same output.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Set

from dateutil import tz

from ..utils.config import SectionConfig
from .data_models import Section, Task, TaskCategory, TaskMove

DAYS_IN_WEEK = 7


def _local_date(moment: datetime, reference: datetime) -> date:
    """Calendar date of *moment* in the time zone of *reference*."""
    if moment.tzinfo is None:
        return moment.date()
    zone = reference.tzinfo or tz.tzlocal()
    return moment.astimezone(zone).date()


def task_due_date(task: Task, now: datetime) -> Optional[date]:
    """The calendar date a task is due, or None if it has no due date.

    ``due_on`` wins; a task with only ``due_at`` is due on the local date of
    that instant.
    """
    if task.due_on is not None:
        return task.due_on
    if task.due_at is not None:
        return _local_date(task.due_at, now)
    return None


def categorize_due_date(due: Optional[date], now: datetime) -> TaskCategory:
    if due is None:
        return TaskCategory.no_date

    today = now.date()
    if due == today:
        return TaskCategory.due_today
    if due < today:
        return TaskCategory.overdue

    days = (due - today).days
    if days <= DAYS_IN_WEEK:
        return TaskCategory.due_this_week
    return TaskCategory.due_later


def get_task_category(task: Task, now: datetime) -> TaskCategory:
    return categorize_due_date(task_due_date(task, now), now)


def categorize_tasks(tasks: Iterable[Task], now: datetime) -> Dict[TaskCategory, List[Task]]:
    """Group tasks by category, keeping input order inside each group."""
    categorized: Dict[TaskCategory, List[Task]] = {}
    for task in tasks:
        categorized.setdefault(get_task_category(task, now), []).append(task)
    return categorized


def get_category_to_section_map(config: SectionConfig) -> Dict[TaskCategory, str]:
    # Insertion order is the display order.
    return {
        TaskCategory.overdue: config.overdue,
        TaskCategory.due_today: config.due_today,
        TaskCategory.due_this_week: config.due_this_week,
        TaskCategory.due_later: config.due_later,
        TaskCategory.no_date: config.no_date,
    }


def create_ignored_sections_set(ignored_sections: Iterable[str]) -> Set[str]:
    return set(ignored_sections)


def create_section_name_to_gid_map(sections: Iterable[Section]) -> Dict[str, str]:
    """Map section names to gids; the last section with a given name wins."""
    return {section.name: section.gid for section in sections}


def calculate_task_moves(
    tasks: Iterable[Task],
    config: SectionConfig,
    section_name_to_gid: Mapping[str, str],
    ignored_sections: Set[str],
    now: datetime,
) -> List[TaskMove]:
    """Work out which tasks belong in a different section.

    A task is left alone when it sits in an ignored section, when its target
    section is ignored, when it is already in its target section, or when
    the target section does not exist (no gid known for it).
    """
    category_to_section = get_category_to_section_map(config)
    moves: List[TaskMove] = []

    for task in tasks:
        current_section = task.assignee_section.name

        if current_section in ignored_sections:
            continue

        target_section = category_to_section[get_task_category(task, now)]

        if target_section in ignored_sections:
            continue
        if current_section == target_section:
            continue

        section_gid = section_name_to_gid.get(target_section)
        if section_gid is None:
            continue

        moves.append(TaskMove(task=task, section_gid=section_gid, section_name=target_section))

    return moves
