"""
Asana Tasks Sorter: command-line tool that files your Asana "My Tasks" into
sections by due date (Overdue, Due today, Due this week, Due later, No date).
"""

__version__ = "1.0.0"
__author__ = "Asana Tasks Sorter Team"

# Import the main CLI app for entry point
from .sorter import app

__all__ = ["app", "__version__"]
