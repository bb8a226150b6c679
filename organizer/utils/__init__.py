"""
Utilities Package - Helper functions shared by the data-access layer

This package contains:
- timestamps.py: write-path hook that maintains created_at / updated_at
- validators.py: domain rule checks applied before anything reaches storage
"""

from organizer.utils.timestamps import TimestampMixin, utcnow, get_clock, touch, pin_created_at

__all__ = [
    "TimestampMixin",
    "utcnow",
    "get_clock",
    "touch",
    "pin_created_at",
]
