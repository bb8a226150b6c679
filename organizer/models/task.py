"""
Task Model - The single entity of the organizer schema
"""

from sqlalchemy import (
    BigInteger, CheckConstraint, Column, DDL, Date, DateTime, Enum as SQLEnum,
    Index, Integer, String, Text, event,
)
import enum

from organizer.database import Base
from organizer.utils.timestamps import TimestampMixin


class TaskPriority(str, enum.Enum):
    """Task priority - closed set enforced by the database as priority_enum"""
    HIGH = "HIGH"  # Do first
    MEDIUM = "MEDIUM"  # Normal priority
    LOW = "LOW"  # Can wait


class TaskType(str, enum.Enum):
    """Task type - closed set enforced by the database as task_type_enum"""
    WORK = "WORK"
    HOME = "HOME"


class Task(TimestampMixin, Base):
    """
    Task table - one row per scheduled item.

    created_at / updated_at come from TimestampMixin and are maintained by the
    session hooks in organizer.utils.timestamps; callers never set them.
    """
    __tablename__ = "tasks"

    # Primary key - BIGSERIAL on PostgreSQL, AUTOINCREMENT rowid on SQLite (ids never reused)
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    # Task content
    date = Column(Date, nullable=False)  # Day the task is scheduled for
    task_name = Column(String(255), nullable=False)  # Short title (max 255 chars)
    comment = Column(Text, nullable=True)  # Free-form notes (optional, unlimited length)
    deadline = Column(DateTime, nullable=True)  # Must be later than created_at when present

    # Closed enumerations - native ENUM on PostgreSQL, CHECK constraint elsewhere
    priority = Column(SQLEnum(TaskPriority, name="priority_enum", create_constraint=True), nullable=False)
    task_type = Column(SQLEnum(TaskType, name="task_type_enum", create_constraint=True), nullable=False)

    __table_args__ = (
        # Single-column indexes for the individual filter/sort patterns
        Index("idx_tasks_date", "date"),
        Index("idx_tasks_priority", "priority"),
        Index("idx_tasks_task_type", "task_type"),
        Index("idx_tasks_deadline", "deadline"),
        Index("idx_tasks_task_name", "task_name"),
        Index("idx_tasks_created_at", "created_at"),
        # Composite indexes only where two predicates are commonly combined
        Index("idx_tasks_priority_type", "priority", "task_type"),
        Index("idx_tasks_date_priority", "date", "priority"),
        # Row-level integrity rules
        CheckConstraint("length(trim(task_name)) > 0", name="chk_task_name_not_empty"),
        CheckConstraint("deadline IS NULL OR deadline > created_at", name="chk_deadline_future"),
        CheckConstraint("updated_at >= created_at", name="chk_updated_after_created"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self):
        return f"<Task {self.id}: {self.task_name} ({self.priority}, {self.task_type})>"


# Storage-side update hook on PostgreSQL: server clock stamps updated_at, created_at is frozen
PG_UPDATED_AT_FUNCTION = DDL("""
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    IF NEW.created_at IS DISTINCT FROM OLD.created_at THEN
        RAISE EXCEPTION 'created_at is write-once' USING ERRCODE = 'check_violation';
    END IF;
    NEW.updated_at = GREATEST(timezone('utc', clock_timestamp()), OLD.updated_at);
    RETURN NEW;
END;
$$ language 'plpgsql'
""")

PG_UPDATED_AT_TRIGGER = DDL("""
CREATE TRIGGER update_tasks_updated_at
    BEFORE UPDATE ON tasks
    FOR EACH ROW
    EXECUTE FUNCTION update_updated_at_column()
""")

PG_DROP_FUNCTION = DDL("DROP FUNCTION IF EXISTS update_updated_at_column()")

# SQLite: refuse created_at rewrites
SQLITE_CREATED_AT_GUARD = DDL("""
CREATE TRIGGER IF NOT EXISTS trg_tasks_created_at_immutable
BEFORE UPDATE OF created_at ON tasks
FOR EACH ROW WHEN NEW.created_at IS NOT OLD.created_at
BEGIN
    SELECT RAISE(ABORT, 'created_at is write-once');
END
""")

# SQLite: restamp updated_at after any UPDATE that left it stale, moved it back or
# pushed it past the database clock. Session stamps moving forward are kept so a
# caller-supplied clock stays authoritative. recursive_triggers is off, so the
# inner UPDATE does not fire this trigger again.
SQLITE_UPDATED_AT_TRIGGER = DDL("""
CREATE TRIGGER IF NOT EXISTS trg_tasks_updated_at
AFTER UPDATE ON tasks
FOR EACH ROW WHEN NEW.updated_at IS OLD.updated_at
    OR NEW.updated_at < OLD.updated_at
    OR NEW.updated_at > strftime('%%Y-%%m-%%d %%H:%%M:%%f000', 'now')
BEGIN
    UPDATE tasks
    SET updated_at = max(strftime('%%Y-%%m-%%d %%H:%%M:%%f000', 'now'), OLD.updated_at)
    WHERE id = NEW.id;
END
""")

event.listen(Task.__table__, "after_create", PG_UPDATED_AT_FUNCTION.execute_if(dialect="postgresql"))
event.listen(Task.__table__, "after_create", PG_UPDATED_AT_TRIGGER.execute_if(dialect="postgresql"))
event.listen(Task.__table__, "after_drop", PG_DROP_FUNCTION.execute_if(dialect="postgresql"))
event.listen(Task.__table__, "after_create", SQLITE_CREATED_AT_GUARD.execute_if(dialect="sqlite"))
event.listen(Task.__table__, "after_create", SQLITE_UPDATED_AT_TRIGGER.execute_if(dialect="sqlite"))
