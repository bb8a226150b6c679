"""
Task Schemas - Pydantic models for task payloads and responses
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import timezone
import datetime as dt
import enum

from organizer.models.task import TaskPriority, TaskType

# DO NOT import from organizer.schemas here - causes circular import


def _naive_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    """Timestamps are stored as naive UTC; convert aware values, keep naive ones as-is"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("Task name cannot be empty")
    return value


class TaskBase(BaseModel):
    """Base schema with common task fields"""
    date: dt.date  # Day the task is scheduled for
    task_name: str = Field(..., max_length=255)  # Short title
    comment: Optional[str] = None  # Free-form notes (optional)
    deadline: Optional[dt.datetime] = None  # Must be later than creation time
    priority: TaskPriority  # HIGH | MEDIUM | LOW
    task_type: TaskType  # WORK | HOME


class TaskCreate(TaskBase):
    """Schema for creating a new task - id and timestamps are system-assigned"""

    class Config:
        extra = "forbid"  # Unknown fields are malformed input

    @field_validator("task_name")
    @classmethod
    def validate_task_name(cls, v):
        """Reject names that are empty after trimming"""
        return _non_blank(v)

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, v):
        return _naive_utc(v)


class TaskUpdate(BaseModel):
    """Schema for updating an existing task - all fields optional, only supplied ones change"""
    date: Optional[dt.date] = None
    task_name: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = None  # Explicit None clears the comment
    deadline: Optional[dt.datetime] = None  # Explicit None clears the deadline
    priority: Optional[TaskPriority] = None
    task_type: Optional[TaskType] = None

    class Config:
        extra = "forbid"

    @field_validator("task_name")
    @classmethod
    def validate_task_name(cls, v):
        """Same rule as TaskCreate"""
        return _non_blank(v)

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, v):
        return _naive_utc(v)


class TaskResponse(TaskBase):
    """Schema for task data in responses"""
    id: int  # Task unique identifier
    created_at: dt.datetime  # Creation timestamp
    updated_at: dt.datetime  # Last modification timestamp

    class Config:
        from_attributes = True  # Build directly from SQLAlchemy rows


class TaskListResponse(BaseModel):
    """Schema for paginated task list"""
    tasks: List[TaskResponse]  # Tasks on this page
    total: int  # Total matching tasks
    page: int  # Current page number
    page_size: int  # Items per page


class TaskSort(str, enum.Enum):
    """Sort orders offered to list queries"""
    ID = "id"  # Insertion order
    DATE = "date"
    PRIORITY = "priority"  # HIGH first
    DEADLINE = "deadline"  # Tasks without a deadline last
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class TaskFilters(BaseModel):
    """Schema for task query filters - all supplied filters are combined with AND"""
    date: Optional[dt.date] = None  # Exact scheduled day
    date_from: Optional[dt.date] = None  # Scheduled on or after
    date_to: Optional[dt.date] = None  # Scheduled on or before
    priority: Optional[TaskPriority] = None
    task_type: Optional[TaskType] = None
    has_deadline: Optional[bool] = None  # True: deadline set, False: no deadline
    deadline_before: Optional[dt.datetime] = None
    deadline_after: Optional[dt.datetime] = None
    name_contains: Optional[str] = None  # Case-insensitive substring
    name_prefix: Optional[str] = None  # Case-insensitive prefix
    created_after: Optional[dt.datetime] = None
    created_before: Optional[dt.datetime] = None

    class Config:
        extra = "forbid"
