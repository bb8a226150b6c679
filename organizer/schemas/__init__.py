"""
Schemas Package - Exports all Pydantic schemas
"""

from organizer.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    TaskListResponse,
    TaskFilters,
    TaskSort,
)

__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskListResponse",
    "TaskFilters",
    "TaskSort",
]
