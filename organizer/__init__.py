"""
Super Organizer - Task storage package

This package holds the task schema (tables, enums, indexes, triggers) and the
data-access functions the REST layer calls.

Usage:
    from organizer.database import SessionLocal
    from organizer.api import tasks
"""

__version__ = "1.0.0"  # Package version
