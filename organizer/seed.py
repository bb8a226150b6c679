"""
Sample Data - Ten demo tasks for a fresh database
"""

from datetime import timedelta
from sqlalchemy.orm import Session
import logging

from organizer.api import tasks as task_api
from organizer.models import TaskPriority, TaskType
from organizer.utils.timestamps import get_clock

logger = logging.getLogger(__name__)

# (day offset, name, comment, deadline offset in days or None, priority, type)
SAMPLE_TASKS = [
    (0, "Complete project documentation", "Write comprehensive documentation for the Super Organizer API", 3, TaskPriority.HIGH, TaskType.WORK),
    (-1, "Grocery shopping", "Buy vegetables, fruits, and dairy products", 1, TaskPriority.MEDIUM, TaskType.HOME),
    (-2, "Code review", "Review pull requests from team members", None, TaskPriority.MEDIUM, TaskType.WORK),
    (0, "Clean the house", "Deep cleaning of all rooms", 2, TaskPriority.LOW, TaskType.HOME),
    (1, "Prepare presentation", "Create slides for the quarterly meeting", 5, TaskPriority.HIGH, TaskType.WORK),
    (-3, "Exercise routine", "30-minute workout session", None, TaskPriority.MEDIUM, TaskType.HOME),
    (0, "Team meeting", "Weekly team sync and planning", 1, TaskPriority.HIGH, TaskType.WORK),
    (-1, "Pay bills", "Electricity, water, and internet bills", 3, TaskPriority.MEDIUM, TaskType.HOME),
    (2, "Database optimization", "Optimize queries and add indexes", 7, TaskPriority.LOW, TaskType.WORK),
    (0, "Garden maintenance", "Water plants and trim hedges", None, TaskPriority.LOW, TaskType.HOME),
]


def seed_sample_data(db: Session) -> int:
    """
    Insert the sample tasks when the table is empty, all in one transaction.
    Dates and deadlines are relative to the session clock.

    Returns:
        Number of tasks inserted (0 when the table already had data)
    """
    existing = task_api.count_tasks(db)
    if existing:
        logger.info(f"ℹ️  Skipping sample data, tasks table already has {existing} rows")
        return 0

    now = get_clock(db)()
    created = task_api.create_tasks(db, [
        {
            "date": now.date() + timedelta(days=day_offset),
            "task_name": name,
            "comment": comment,
            "deadline": now + timedelta(days=deadline_days) if deadline_days is not None else None,
            "priority": priority,
            "task_type": task_type,
        }
        for day_offset, name, comment, deadline_days, priority, task_type in SAMPLE_TASKS
    ])

    logger.info(f"✅ Inserted {len(created)} sample tasks")
    return len(created)
