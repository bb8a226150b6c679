"""
Models Package - Exports the task model and its enumerations
"""

# Importing the model registers the tasks table (and its triggers) with Base
from organizer.models.task import Task, TaskPriority, TaskType

__all__ = [
    "Task",
    "TaskPriority",
    "TaskType",
]
