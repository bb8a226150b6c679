# tests/test_queries.py

from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy.orm import Session

from organizer.api import tasks as task_api
from organizer.core.exceptions import ValidationError
from organizer.models import TaskPriority, TaskType
from organizer.schemas import TaskFilters, TaskSort


def _names(tasks) -> list[str]:
    return [t.task_name for t in tasks]


@pytest.fixture()
def sample(make_task, clock):
    """Four tasks with distinct dates, deadlines and categories."""
    make_task(task_name="Cook dinner", date=date(2024, 1, 3), priority="MEDIUM", task_type="HOME",
              deadline=datetime(2024, 1, 3, 19, 0))
    clock.advance(minutes=1)
    make_task(task_name="Ship release", date=date(2024, 1, 2), priority="HIGH", task_type="WORK",
              deadline=datetime(2024, 1, 2, 17, 0))
    clock.advance(minutes=1)
    make_task(task_name="Water plants", date=date(2024, 1, 4), priority="LOW", task_type="HOME")
    clock.advance(minutes=1)
    make_task(task_name="Review budget", date=date(2024, 1, 2), priority="MEDIUM", task_type="WORK")


def test_filter_by_priority_returns_only_matches(db: Session, make_task) -> None:
    for priority in ("MEDIUM", "LOW", "HIGH", "MEDIUM"):
        make_task(task_name=f"{priority} task", priority=priority)

    result = task_api.get_tasks_by_priority(db, TaskPriority.MEDIUM)

    assert len(result) == 2
    assert all(t.priority == TaskPriority.MEDIUM for t in result)


def test_composite_priority_and_type_filter(db: Session, make_task) -> None:
    make_task(task_name="a", priority="HIGH", task_type="WORK")
    make_task(task_name="b", priority="HIGH", task_type="HOME")
    make_task(task_name="c", priority="LOW", task_type="WORK")

    result = task_api.get_tasks_by_priority_and_type(db, "HIGH", "WORK")

    assert _names(result) == ["a"]


def test_filter_by_type_and_date(db: Session, sample) -> None:
    assert _names(task_api.get_tasks_by_type(db, TaskType.HOME)) == ["Cook dinner", "Water plants"]
    assert _names(task_api.get_tasks_by_date(db, date(2024, 1, 2))) == ["Ship release", "Review budget"]
    assert _names(task_api.get_tasks_by_date_and_priority(db, date(2024, 1, 2), "MEDIUM")) == ["Review budget"]


def test_deadline_presence(db: Session, sample) -> None:
    assert _names(task_api.get_tasks_with_deadline(db)) == ["Ship release", "Cook dinner"]
    assert _names(task_api.get_tasks_without_deadline(db)) == ["Water plants", "Review budget"]


def test_sort_orders(db: Session, sample) -> None:
    assert _names(task_api.get_tasks_sorted_by_deadline(db)) == [
        "Ship release", "Cook dinner", "Water plants", "Review budget",
    ]
    assert _names(task_api.get_tasks_sorted_by_deadline(db, descending=True))[:2] == [
        "Cook dinner", "Ship release",
    ]
    assert [t.priority for t in task_api.get_tasks_sorted_by_priority(db)] == [
        TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.MEDIUM, TaskPriority.LOW,
    ]
    assert _names(task_api.get_tasks_sorted_by_priority(db, descending=True))[0] == "Water plants"
    assert [t.date for t in task_api.get_tasks_sorted_by_date(db)] == [
        date(2024, 1, 2), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4),
    ]


def test_recently_updated_first(db: Session, sample, clock) -> None:
    cook = task_api.search_tasks_by_name(db, "Cook")[0]
    clock.advance(hours=1)
    task_api.update_task(db, cook.id, {"comment": "Pasta"})

    assert _names(task_api.get_recently_updated_tasks(db, limit=2)) == ["Cook dinner", "Review budget"]


def test_name_search_is_case_insensitive(db: Session, sample) -> None:
    assert _names(task_api.search_tasks_by_name(db, "PLANT")) == ["Water plants"]
    assert _names(task_api.search_tasks_by_name(db, "re", prefix=True)) == ["Review budget"]
    assert _names(task_api.search_tasks_by_name(db, "re")) == ["Ship release", "Review budget"]


def test_name_search_treats_wildcards_literally(db: Session, make_task) -> None:
    make_task(task_name="100% done")
    make_task(task_name="1000 done")
    make_task(task_name="snake_case rename")
    make_task(task_name="snakeXcase rename")

    assert _names(task_api.search_tasks_by_name(db, "0%")) == ["100% done"]
    assert _names(task_api.search_tasks_by_name(db, "e_c")) == ["snake_case rename"]


def test_combined_filters(db: Session, sample) -> None:
    filters = TaskFilters(date_from=date(2024, 1, 2), date_to=date(2024, 1, 3), task_type=TaskType.WORK)
    assert _names(task_api.list_tasks(db, filters)) == ["Ship release", "Review budget"]

    filters = {"deadline_after": datetime(2024, 1, 2, 18, 0)}
    assert _names(task_api.list_tasks(db, filters)) == ["Cook dinner"]

    filters = {"created_after": datetime(2024, 1, 1, 9, 2)}
    assert task_api.count_tasks(db, filters) == 2


def test_pagination(db: Session, sample) -> None:
    page = task_api.get_tasks_page(db, page=2, page_size=3, sort=TaskSort.DATE)

    assert page.total == 4
    assert page.page == 2
    assert [t.task_name for t in page.tasks] == ["Water plants"]


@pytest.mark.parametrize(
    "kwargs",
    [{"page": 0}, {"page_size": 0}, {"page_size": 101}, {"sort": "colour"}, {"filters": {"priority": "URGENT"}}],
)
def test_invalid_listing_arguments(db: Session, kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        task_api.get_tasks_page(db, **kwargs)


def test_list_all_in_insertion_order(db: Session, sample) -> None:
    assert _names(task_api.list_all_tasks(db)) == [
        "Cook dinner", "Ship release", "Water plants", "Review budget",
    ]
