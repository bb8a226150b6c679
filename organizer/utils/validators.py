"""
Task Validators - Domain rules checked before a write reaches the database

The database enforces the same rules (CHECK constraints, enum types); checking
here first lets us report which field is wrong and keeps the error taxonomy
stable across backends:
    - missing / malformed field        -> ValidationError
    - blank name, bad category, deadline not after creation -> ConstraintViolation
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from organizer.core.exceptions import ConstraintViolation, ValidationError
from organizer.models.task import Task, TaskPriority, TaskType
from organizer.schemas.task import TaskCreate, TaskUpdate

REQUIRED_FIELDS = ("date", "task_name", "priority", "task_type")
SYSTEM_FIELDS = ("id", "created_at", "updated_at")  # Assigned by the store, never by callers
CATEGORY_FIELDS = {"priority": TaskPriority, "task_type": TaskType}


def _as_dict(payload: Any) -> dict:
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=True)
    if isinstance(payload, Mapping):
        return dict(payload)
    raise ValidationError(f"Task payload must be a mapping or schema, got {type(payload).__name__}")


def check_category(enum_cls, field: str, value: Any):
    """Return the enum member for value or reject it - no case folding, no coercion"""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in enum_cls)
    raise ConstraintViolation(f"{field} must be one of {allowed}, got {value!r}", field)


def check_task_name(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("task_name must be text", "task_name")
    if not value.strip():
        raise ConstraintViolation("Task name cannot be empty", "task_name")
    return value


def check_deadline(deadline: Optional[datetime], created_at: datetime) -> None:
    """Deadline is compared with the creation time, never with the current time"""
    if deadline is not None and deadline <= created_at:
        raise ConstraintViolation(
            f"Deadline {deadline.isoformat()} must be later than creation time {created_at.isoformat()}",
            "deadline",
        )


def _parse(schema_cls, data: dict):
    try:
        return schema_cls(**data)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(x) for x in error["loc"]),  # Field path
                "message": error["msg"],
                "type": error["type"],
            }
            for error in e.errors()
        ]
        first = errors[0]["field"] if errors else None
        raise ValidationError(f"Invalid task data: {errors}", first, errors) from e


def _reject_nulls(data: dict) -> None:
    missing = [f for f in REQUIRED_FIELDS if f in data and data[f] is None]
    if missing:
        errors = [{"field": f, "message": "Field required", "type": "missing"} for f in missing]
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}", missing[0], errors)


def prepare_create(payload: Any, created_at: datetime) -> TaskCreate:
    """
    Validate a create payload against the rules a new row must satisfy.

    Args:
        payload: TaskCreate or plain mapping of field values
        created_at: Creation time the row is about to receive

    Returns:
        Validated TaskCreate
    """
    data = _as_dict(payload)
    for key in SYSTEM_FIELDS:
        data.pop(key, None)

    _reject_nulls({f: data.get(f) for f in REQUIRED_FIELDS})

    for field, enum_cls in CATEGORY_FIELDS.items():
        data[field] = check_category(enum_cls, field, data[field])
    check_task_name(data["task_name"])

    task_in = _parse(TaskCreate, data)
    check_deadline(task_in.deadline, created_at)
    return task_in


def prepare_update(payload: Any, task: Task) -> dict[str, Any]:
    """
    Validate a partial update against the stored row.

    Returns:
        Mapping of the fields to change and their new values
    """
    data = _as_dict(payload)
    data.pop("updated_at", None)  # Always recomputed by the timestamp hook
    for key in ("id", "created_at"):
        if key in data and data.pop(key) != getattr(task, key):
            raise ConstraintViolation(f"{key} cannot be modified", key)

    _reject_nulls(data)

    for field, enum_cls in CATEGORY_FIELDS.items():
        if field in data:
            data[field] = check_category(enum_cls, field, data[field])
    if "task_name" in data:
        check_task_name(data["task_name"])

    changes = _parse(TaskUpdate, data).model_dump(exclude_unset=True)
    if "deadline" in changes:
        check_deadline(changes["deadline"], task.created_at)
    return changes
