# tests/conftest.py

from __future__ import annotations

import os

# Settings are read once at import time; point them at SQLite before anything imports organizer.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"

from collections.abc import Callable, Iterator
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from organizer.api import tasks as task_api
from organizer.database import build_engine, init_db
from organizer.models import Task

from .fakes import FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 9, 0, 0))


@pytest.fixture()
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Fresh SQLite file per test with the full schema (constraints, indexes, triggers)."""
    engine = build_engine(f"sqlite:///{tmp_path / 'tasks.sqlite3'}", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine: Engine, clock: FakeClock) -> sessionmaker:
    return sessionmaker(bind=db_engine, autoflush=False, info={"clock": clock})


@pytest.fixture()
def db(session_factory: sessionmaker) -> Iterator[Session]:
    with session_factory() as session:
        yield session


@pytest.fixture()
def make_task(db: Session) -> Callable[..., Task]:
    """Create a valid task, overriding any field via keyword arguments."""

    def _make(**overrides: Any) -> Task:
        payload: dict[str, Any] = {
            "date": date(2024, 1, 2),
            "task_name": "Write report",
            "comment": None,
            "deadline": None,
            "priority": "MEDIUM",
            "task_type": "WORK",
        }
        payload.update(overrides)
        return task_api.create_task(db, payload)

    return _make
