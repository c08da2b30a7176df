"""
Asana API layer package.
Implements the REST client, its data models, and the due-date sorting rules.
"""

from .client import (
    AsanaAPIError,
    AsanaClient,
    AsanaError,
    AsanaRequestError,
    AsanaTransportError,
    Deadline,
    DeadlineExceeded,
    ResponseParseError,
)
from .data_models import Section, Task, TaskCategory, TaskMove
from .interface import AsanaAPI
from .task_operations import calculate_task_moves, categorize_tasks, get_task_category

__all__ = [
    'AsanaAPI',
    'AsanaAPIError',
    'AsanaClient',
    'AsanaError',
    'AsanaRequestError',
    'AsanaTransportError',
    'Deadline',
    'DeadlineExceeded',
    'ResponseParseError',
    'Section',
    'Task',
    'TaskCategory',
    'TaskMove',
    'calculate_task_moves',
    'categorize_tasks',
    'get_task_category',
]
