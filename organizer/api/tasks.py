"""
Tasks API - Data-access operations behind the REST task endpoints

Every function takes the caller's Session as its first argument, the way a
request handler receives `db: Session`. Writes are one transaction each:
committed on success, rolled back on any failure, errors re-raised from
organizer.core.exceptions.
"""

from sqlalchemy import case, delete
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Query, Session
from pydantic import ValidationError as PydanticValidationError
from typing import Any, Iterable, Optional, Union
import datetime as dt
import logging

from organizer.core.exceptions import NotFound, OrganizerError, ValidationError, translate_db_error
from organizer.models import Task, TaskPriority, TaskType
from organizer.schemas import TaskFilters, TaskListResponse, TaskResponse, TaskSort
from organizer.utils.timestamps import get_clock, pin_created_at, touch
from organizer.utils.validators import prepare_create, prepare_update

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

# HIGH sorts first; enum declaration order differs between backends
PRIORITY_RANK = case(
    (Task.priority == TaskPriority.HIGH, 0),
    (Task.priority == TaskPriority.MEDIUM, 1),
    else_=2,
)

FiltersArg = Optional[Union[TaskFilters, dict]]


# ---- helpers ----

def _commit(db: Session, action: str) -> None:
    """Commit the current transaction or roll it back and raise a domain error"""
    try:
        db.commit()
    except OrganizerError as e:
        db.rollback()
        logger.warning(f"⚠️  Could not {action}: {e.message}")
        raise
    except DBAPIError as e:
        raise _storage_error(db, e, action) from e
    except SQLAlchemyError:
        db.rollback()
        raise


def _storage_error(db: Session, e: DBAPIError, action: str) -> OrganizerError:
    """Roll back the failed transaction and return the matching domain error"""
    db.rollback()
    error = translate_db_error(e)
    logger.error(f"❌ Failed to {action}: {error.message}", exc_info=True)
    return error


def _fetch(db: Session, query: Query) -> list[Task]:
    try:
        return query.all()
    except DBAPIError as e:
        raise _storage_error(db, e, "list tasks") from e


def _coerce_filters(filters: FiltersArg) -> Optional[TaskFilters]:
    if filters is None or isinstance(filters, TaskFilters):
        return filters
    try:
        return TaskFilters(**filters)
    except (PydanticValidationError, TypeError) as e:
        raise ValidationError(f"Invalid task filters: {e}", "filters") from e


def _coerce_sort(sort: Union[TaskSort, str]) -> TaskSort:
    try:
        return TaskSort(sort)
    except ValueError as e:
        allowed = ", ".join(s.value for s in TaskSort)
        raise ValidationError(f"Unknown sort order {sort!r}, expected one of {allowed}", "sort") from e


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_filters(query: Query, filters: Optional[TaskFilters]) -> Query:
    if filters is None:
        return query

    if filters.date is not None:
        query = query.filter(Task.date == filters.date)
    if filters.date_from is not None:
        query = query.filter(Task.date >= filters.date_from)
    if filters.date_to is not None:
        query = query.filter(Task.date <= filters.date_to)
    if filters.priority is not None:
        query = query.filter(Task.priority == filters.priority)
    if filters.task_type is not None:
        query = query.filter(Task.task_type == filters.task_type)
    if filters.has_deadline is True:
        query = query.filter(Task.deadline.is_not(None))
    elif filters.has_deadline is False:
        query = query.filter(Task.deadline.is_(None))
    if filters.deadline_before is not None:
        query = query.filter(Task.deadline < filters.deadline_before)
    if filters.deadline_after is not None:
        query = query.filter(Task.deadline > filters.deadline_after)
    if filters.name_contains:
        query = query.filter(Task.task_name.ilike(f"%{_escape_like(filters.name_contains)}%", escape="\\"))
    if filters.name_prefix:
        query = query.filter(Task.task_name.ilike(f"{_escape_like(filters.name_prefix)}%", escape="\\"))
    if filters.created_after is not None:
        query = query.filter(Task.created_at >= filters.created_after)
    if filters.created_before is not None:
        query = query.filter(Task.created_at < filters.created_before)
    return query


def _order_by(sort: TaskSort, descending: bool) -> list:
    if sort == TaskSort.DEADLINE:
        # Tasks without a deadline always go last
        column = Task.deadline.desc() if descending else Task.deadline.asc()
        return [Task.deadline.is_(None), column, Task.id.asc()]

    key = {
        TaskSort.ID: Task.id,
        TaskSort.DATE: Task.date,
        TaskSort.PRIORITY: PRIORITY_RANK,
        TaskSort.CREATED_AT: Task.created_at,
        TaskSort.UPDATED_AT: Task.updated_at,
    }[sort]
    if sort == TaskSort.ID:
        return [key.desc() if descending else key.asc()]
    return [key.desc() if descending else key.asc(), Task.id.asc()]


# ---- write operations ----

def _build_task(payload: Any, created_at: dt.datetime) -> Task:
    """Validate payload against created_at and return a pending Task stamped with it"""
    try:
        task_in = prepare_create(payload, created_at)
    except OrganizerError as e:
        logger.warning(f"⚠️  Rejected task create: {e.message}")
        raise

    task = Task(**task_in.model_dump())
    pin_created_at(task, created_at)
    return task


def create_task(db: Session, payload: Any) -> Task:
    """
    Create a task.

    Args:
        db: Database session
        payload: TaskCreate or mapping with date, task_name, priority, task_type
            and optional comment / deadline

    Returns:
        Created Task with id, created_at and updated_at assigned

    Raises:
        ValidationError: required field missing or malformed
        ConstraintViolation: blank name, unknown category, deadline not after creation
        ConflictOrTransient: storage busy; nothing was written
    """
    task = _build_task(payload, get_clock(db)())
    db.add(task)
    _commit(db, "create task")
    db.refresh(task)  # Load generated id and stamped timestamps

    logger.info(f"✅ Task created: #{task.id} '{task.task_name}' ({task.priority.value}/{task.task_type.value})")
    return task


def create_tasks(db: Session, payloads: Iterable[Any]) -> list[Task]:
    """
    Create several tasks in one transaction: either every task is stored
    or none is. All rows share one created_at.

    Raises:
        Same as create_task, for the first payload that fails
    """
    created_at = get_clock(db)()
    tasks = [_build_task(payload, created_at) for payload in payloads]
    if not tasks:
        return []

    db.add_all(tasks)
    _commit(db, f"create {len(tasks)} tasks")
    for task in tasks:
        db.refresh(task)

    logger.info(f"✅ Tasks created: {len(tasks)} (#{tasks[0].id}..#{tasks[-1].id})")
    return tasks


def update_task(db: Session, task_id: int, payload: Any) -> Task:
    """
    Apply a partial update. Fields not present in payload keep their value;
    updated_at advances even when nothing else changes.

    Raises:
        NotFound: no task with task_id
        ValidationError / ConstraintViolation: same rules as create for changed fields
    """
    task = get_task(db, task_id)
    try:
        changes = prepare_update(payload, task)
    except OrganizerError as e:
        logger.warning(f"⚠️  Rejected update of task #{task_id}: {e.message}")
        raise

    for field, value in changes.items():
        setattr(task, field, value)
    touch(task)
    _commit(db, f"update task #{task_id}")
    db.refresh(task)

    changed = ", ".join(changes) or "no field changes"
    logger.info(f"✅ Task updated: #{task_id} ({changed})")
    return task


def delete_task(db: Session, task_id: int) -> bool:
    """
    Delete a task.

    Returns:
        True if a row was removed, False if no task had that id (no-op)
    """
    try:
        result = db.execute(delete(Task).where(Task.id == task_id))
    except DBAPIError as e:
        raise _storage_error(db, e, f"delete task #{task_id}") from e
    _commit(db, f"delete task #{task_id}")

    if not result.rowcount:
        logger.warning(f"⚠️  Delete skipped, task #{task_id} not found")
        return False
    logger.info(f"✅ Task deleted: #{task_id}")
    return True


# ---- read operations ----

def get_task(db: Session, task_id: int) -> Task:
    """Fetch one task by id (fresh from the database) or raise NotFound"""
    try:
        task = db.get(Task, task_id, populate_existing=True)
    except DBAPIError as e:
        raise _storage_error(db, e, f"fetch task #{task_id}") from e
    if task is None:
        logger.warning(f"⚠️  Task #{task_id} not found")
        raise NotFound(task_id)
    return task


def list_tasks(
    db: Session,
    filters: FiltersArg = None,
    sort: Union[TaskSort, str] = TaskSort.ID,
    descending: bool = False,
    offset: int = 0,
    limit: Optional[int] = None,
) -> list[Task]:
    """
    List tasks matching every supplied filter.

    Args:
        filters: TaskFilters or mapping of filter fields
        sort: TaskSort value; ties are broken by id
        descending: Reverse the sort (deadline sort still puts missing deadlines last)
        offset / limit: Window over the sorted result
    """
    query = _apply_filters(db.query(Task), _coerce_filters(filters))
    query = query.order_by(*_order_by(_coerce_sort(sort), descending))
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return _fetch(db, query)


def count_tasks(db: Session, filters: FiltersArg = None) -> int:
    try:
        return _apply_filters(db.query(Task), _coerce_filters(filters)).count()
    except DBAPIError as e:
        raise _storage_error(db, e, "count tasks") from e


def get_tasks_page(
    db: Session,
    page: int = 1,
    page_size: int = 50,
    filters: FiltersArg = None,
    sort: Union[TaskSort, str] = TaskSort.ID,
    descending: bool = False,
) -> TaskListResponse:
    """Paginated listing shaped for the REST layer (page numbers start at 1)"""
    if page < 1:
        raise ValidationError("page must be at least 1", "page")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}", "page_size")

    total = count_tasks(db, filters)
    tasks = list_tasks(db, filters, sort, descending, offset=(page - 1) * page_size, limit=page_size)
    logger.debug(f"Returning {len(tasks)} tasks (total: {total})")
    return TaskListResponse(
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        total=total,
        page=page,
        page_size=page_size,
    )


def list_all_tasks(db: Session) -> list[Task]:
    return list_tasks(db)


def search_tasks_by_name(db: Session, text: str, prefix: bool = False) -> list[Task]:
    """Case-insensitive name search; substring by default, prefix when prefix=True"""
    if prefix:
        return list_tasks(db, TaskFilters(name_prefix=text))
    return list_tasks(db, TaskFilters(name_contains=text))


def get_tasks_by_date(db: Session, date: dt.date) -> list[Task]:
    return list_tasks(db, TaskFilters(date=date))


def get_tasks_by_priority(db: Session, priority: Union[TaskPriority, str]) -> list[Task]:
    return list_tasks(db, {"priority": priority})


def get_tasks_by_type(db: Session, task_type: Union[TaskType, str]) -> list[Task]:
    return list_tasks(db, {"task_type": task_type})


def get_tasks_by_priority_and_type(
    db: Session, priority: Union[TaskPriority, str], task_type: Union[TaskType, str]
) -> list[Task]:
    return list_tasks(db, {"priority": priority, "task_type": task_type})


def get_tasks_by_date_and_priority(db: Session, date: dt.date, priority: Union[TaskPriority, str]) -> list[Task]:
    return list_tasks(db, {"date": date, "priority": priority})


def get_tasks_with_deadline(db: Session) -> list[Task]:
    return list_tasks(db, TaskFilters(has_deadline=True), sort=TaskSort.DEADLINE)


def get_tasks_without_deadline(db: Session) -> list[Task]:
    return list_tasks(db, TaskFilters(has_deadline=False))


def get_tasks_sorted_by_deadline(db: Session, descending: bool = False) -> list[Task]:
    return list_tasks(db, sort=TaskSort.DEADLINE, descending=descending)


def get_tasks_sorted_by_priority(db: Session, descending: bool = False) -> list[Task]:
    """HIGH → MEDIUM → LOW; descending=True gives LOW first"""
    return list_tasks(db, sort=TaskSort.PRIORITY, descending=descending)


def get_tasks_sorted_by_date(db: Session, descending: bool = False) -> list[Task]:
    return list_tasks(db, sort=TaskSort.DATE, descending=descending)


def get_recently_updated_tasks(db: Session, limit: int = 10) -> list[Task]:
    """Most recently modified tasks first"""
    return list_tasks(db, sort=TaskSort.UPDATED_AT, descending=True, limit=limit)
