"""
Timestamp Mechanism - Stamps created_at / updated_at on every write

Every flush runs through `stamp_timestamps`, so no code path that goes
through a Session can forget to refresh `updated_at` or spoof it:
    - new rows get created_at = updated_at = now
    - modified rows get updated_at = now (never earlier than the stored value)
    - a modified created_at aborts the flush
ORM bulk `update()` statements and Core updates of a timestamped table get
`updated_at = now` injected as well.

The clock is read from `session.info["clock"]` so callers (and tests) can
supply their own; it defaults to naive UTC wall-clock time.
"""

from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import Column, DateTime, event, inspect
from sqlalchemy.orm import Session
import logging

from organizer.core.exceptions import ConstraintViolation

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_clock(session: Session) -> Clock:
    return session.info.get("clock") or utcnow


class TimestampMixin:
    """Adds system-managed creation and modification timestamps"""
    created_at = Column(DateTime, nullable=False)  # Set once on insert
    updated_at = Column(DateTime, nullable=False)  # Reset on every update


def touch(obj: TimestampMixin) -> None:
    """Mark an instance modified so the next flush refreshes updated_at even with no field changes"""
    # Re-assignment keeps the loaded value as committed history for the max() below
    obj.updated_at = obj.updated_at


def pin_created_at(obj: TimestampMixin, moment: datetime) -> None:
    """
    Fix the creation time a pending instance receives at flush.

    Used when fields were already validated against `moment` (deadline rule),
    so the stored created_at is the same instant the checks saw.
    """
    obj._pinned_created_at = moment


def _committed_value(obj: Any, key: str) -> Any:
    """Value currently stored in the database row, ignoring pending assignments"""
    history = inspect(obj).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


@event.listens_for(Session, "before_flush")
def stamp_timestamps(session, flush_context, instances):
    now = get_clock(session)()

    for obj in session.new:
        if isinstance(obj, TimestampMixin):
            stamp = getattr(obj, "_pinned_created_at", None) or now
            obj.created_at = stamp
            obj.updated_at = stamp

    for obj in session.dirty:
        if not isinstance(obj, TimestampMixin):
            continue
        if inspect(obj).attrs.created_at.history.has_changes():
            logger.warning(f"⚠️  Rejected change to created_at on {obj!r}")
            raise ConstraintViolation("created_at is write-once and cannot be modified", "created_at")
        previous = _committed_value(obj, "updated_at")
        obj.updated_at = now if previous is None else max(now, previous)


def _is_timestamped(orm_execute_state) -> bool:
    mapper = orm_execute_state.bind_mapper
    if mapper is not None:
        return issubclass(mapper.class_, TimestampMixin)
    # Core update() against a Table carries no mapper
    table = getattr(orm_execute_state.statement, "table", None)
    columns = getattr(table, "c", None)
    return columns is not None and "created_at" in columns and "updated_at" in columns


@event.listens_for(Session, "do_orm_execute")
def stamp_bulk_updates(orm_execute_state):
    """Inject updated_at into UPDATE statements that target a timestamped table"""
    if not orm_execute_state.is_update:
        return
    if not _is_timestamped(orm_execute_state):
        return

    now = get_clock(orm_execute_state.session)()
    params = orm_execute_state.parameters
    if isinstance(params, list):
        # Bulk UPDATE by primary key: one parameter dict per row, stamped in place
        for row in params:
            row["updated_at"] = now
    else:
        orm_execute_state.statement = orm_execute_state.statement.values(updated_at=now)
