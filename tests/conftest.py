from __future__ import annotations

from pathlib import Path

import pytest

from taskboard.auth import Caller
from taskboard.config import reset_config
from taskboard.service import TaskService
from taskboard.tasks import repo
from taskboard.tasks.db import Database, reset_database


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the developer's environment out of the tests."""
    for name in ("TASKBOARD_DATABASE_URL", "DATABASE_URL", "OWNER_OPEN_ID", "TASKBOARD_SQL_ECHO",
                 "TASKBOARD_LOG_LEVEL", "TASKBOARD_LOG_DIR"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    reset_database()
    yield
    reset_config()
    reset_database()


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(f"sqlite:///{tmp_path / 'tasks.db'}")
    yield database
    database.dispose()


@pytest.fixture()
def no_db() -> Database:
    return Database(None)


@pytest.fixture()
def service(db: Database) -> TaskService:
    return TaskService(db)


def _caller(db: Database, open_id: str, role: str = "user") -> Caller:
    row = repo.upsert_user(db, {"open_id": open_id, "name": open_id.title(), "role": role})
    return Caller.from_user(row)


@pytest.fixture()
def alice(db: Database) -> Caller:
    return _caller(db, "alice")


@pytest.fixture()
def bob(db: Database) -> Caller:
    return _caller(db, "bob")


@pytest.fixture()
def admin(db: Database) -> Caller:
    return _caller(db, "root", role="admin")
