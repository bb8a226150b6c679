"""
Domain Exceptions - Error taxonomy for task storage operations
"""

from typing import Any, Optional

from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, OperationalError

# PostgreSQL SQLSTATE codes that mean "try again"
RETRYABLE_SQLSTATES = {
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
    "53300",  # too_many_connections
}


class OrganizerError(Exception):
    """Base class for every error raised by the task store"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field  # Offending field, when one can be named


class ValidationError(OrganizerError):
    """A required field is missing or a value is malformed"""

    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(message, field)
        self.errors = errors or []  # [{"field": ..., "message": ..., "type": ...}]


class ConstraintViolation(OrganizerError):
    """A value breaks a domain rule (blank name, early deadline, unknown category)"""


class NotFound(OrganizerError):
    """Operation referenced a task id that does not exist"""

    def __init__(self, task_id: int):
        super().__init__(f"Task with ID {task_id} not found", "id")
        self.task_id = task_id


class ConflictOrTransient(OrganizerError):
    """Storage transaction aborted by contention or resource exhaustion; safe to retry"""


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate_db_error(exc: DBAPIError) -> OrganizerError:
    """
    Map a SQLAlchemy driver error onto the domain taxonomy.

    Returns the domain exception; the caller raises it with `from exc`.
    """
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = detail.lower()

    if exc.connection_invalidated or _sqlstate(exc) in RETRYABLE_SQLSTATES:
        return ConflictOrTransient(f"Storage conflict, retry the operation: {detail}")

    if isinstance(exc, IntegrityError):
        if "not null" in lowered or "null value" in lowered:
            return ValidationError(f"Required field missing: {detail}")
        return ConstraintViolation(f"Constraint violated: {detail}")

    if isinstance(exc, DataError):
        if "enum" in lowered:
            return ConstraintViolation(f"Value outside closed enumeration: {detail}")
        return ValidationError(f"Malformed value: {detail}")

    if isinstance(exc, OperationalError):
        return ConflictOrTransient(f"Storage unavailable or busy: {detail}")

    return OrganizerError(f"Storage error: {detail}")
