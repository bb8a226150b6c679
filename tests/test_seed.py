# tests/test_seed.py

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.orm import Session

from organizer import seed
from organizer.api import tasks as task_api
from organizer.core.exceptions import ConstraintViolation
from organizer.models import TaskPriority
from organizer.seed import SAMPLE_TASKS, seed_sample_data


def test_seed_inserts_sample_tasks_once(db: Session) -> None:
    assert seed_sample_data(db) == len(SAMPLE_TASKS)
    assert seed_sample_data(db) == 0
    assert task_api.count_tasks(db) == 10


def test_seed_dates_are_relative_to_clock(db: Session, clock) -> None:
    seed_sample_data(db)

    docs = task_api.search_tasks_by_name(db, "project documentation")[0]
    assert docs.date == date(2024, 1, 1)
    assert docs.deadline == clock.now.replace(day=4)
    assert docs.priority == TaskPriority.HIGH

    assert len(task_api.get_tasks_without_deadline(db)) == 3
    assert len(task_api.get_tasks_by_priority_and_type(db, "HIGH", "WORK")) == 3
    assert task_api.get_tasks_sorted_by_date(db)[0].task_name == "Exercise routine"


def test_seed_failure_leaves_table_empty(db: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    broken = SAMPLE_TASKS + [(0, "Broken row", None, None, "URGENT", "WORK")]
    monkeypatch.setattr(seed, "SAMPLE_TASKS", broken)

    with pytest.raises(ConstraintViolation):
        seed_sample_data(db)
    assert task_api.count_tasks(db) == 0
