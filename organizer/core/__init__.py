"""
Core Package - Configuration and error taxonomy
"""

from organizer.core.config import settings, get_settings, validate_config, is_production
from organizer.core.exceptions import (
    OrganizerError,
    ValidationError,
    ConstraintViolation,
    NotFound,
    ConflictOrTransient,
    translate_db_error,
)

__all__ = [
    "settings",
    "get_settings",
    "validate_config",
    "is_production",
    "OrganizerError",
    "ValidationError",
    "ConstraintViolation",
    "NotFound",
    "ConflictOrTransient",
    "translate_db_error",
]
