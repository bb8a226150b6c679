"""
API Package - Data-access operations exposed to the REST layer
"""

from organizer.api import tasks

__all__ = ["tasks"]
