import json

import pytest
from sqlalchemy.exc import OperationalError

from taskboard.errors import (
    ErrorCode,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    UnauthenticatedError,
)
from taskboard.schemas import TaskCreateRequest
from taskboard.service import TaskService
from taskboard.tasks import repo
from taskboard.tasks.db import get_database


def _audit(db, task_id):
    return repo.get_audit_logs(db, task_id)


# ---------------- create ----------------

def test_create_forces_status_and_creator(service, db, alice, bob):
    task_id = service.create(alice, {"title": "Fix bug", "status": "completed", "created_by": bob.id})

    task = repo.get_task_by_id(db, task_id)
    assert task["status"] == "todo"
    assert task["created_by"] == alice.id
    assert task["priority"] == "medium"


def test_create_writes_created_audit_entry(service, db, alice):
    task_id = service.create(alice, {"title": "Write docs", "priority": "high"})

    (entry,) = _audit(db, task_id)
    assert entry["action"] == "created"
    assert entry["user_id"] == alice.id
    assert entry["old_value"] is None
    assert json.loads(entry["new_value"])["title"] == "Write docs"
    assert json.loads(entry["new_value"])["priority"] == "high"


def test_create_accepts_pydantic_model(service, db, alice):
    task_id = service.create(alice, TaskCreateRequest(title="From model"))
    assert repo.get_task_by_id(db, task_id)["title"] == "From model"


def test_create_requires_caller(service, db):
    with pytest.raises(UnauthenticatedError) as excinfo:
        service.create(None, {"title": "Sneaky"})
    assert excinfo.value.code is ErrorCode.UNAUTHENTICATED
    assert repo.get_tasks(db) == []


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"title": ""},
        {"title": "x" * 256},
        {"title": "ok", "priority": "urgent"},
        {"title": "ok", "assigned_to": "someone"},
    ],
)
def test_create_rejects_invalid_input(service, db, alice, payload):
    with pytest.raises(InvalidInputError) as excinfo:
        service.create(alice, payload)
    assert excinfo.value.code is ErrorCode.VALIDATION
    assert excinfo.value.errors
    assert repo.get_tasks(db) == []


def test_create_without_database_fails_loudly(no_db, alice):
    with pytest.raises(StoreUnavailableError):
        TaskService(no_db).create(alice, {"title": "Lost"})


def test_create_stores_due_date_as_utc(service, db, alice):
    task_id = service.create(alice, {"title": "tz", "due_date": "2025-01-01T10:00:00+05:00"})
    assert repo.get_task_by_id(db, task_id)["due_date"] == "2025-01-01T05:00:00"


def test_update_stores_due_date_as_utc(service, db, alice):
    task_id = service.create(alice, {"title": "tz", "due_date": "2025-01-01T10:00:00"})
    assert repo.get_task_by_id(db, task_id)["due_date"] == "2025-01-01T10:00:00"

    service.update(alice, {"id": task_id, "due_date": "2025-06-30T23:30:00-02:00"})
    assert repo.get_task_by_id(db, task_id)["due_date"] == "2025-07-01T01:30:00"


def test_boolean_ids_are_rejected(service, db, alice):
    task_id = service.create(alice, {"title": "First"})
    assert task_id == 1

    with pytest.raises(InvalidInputError):
        service.get_by_id(alice, {"id": True})
    with pytest.raises(InvalidInputError):
        service.update(alice, {"id": True, "title": "Renamed"})
    with pytest.raises(InvalidInputError):
        service.list(alice, {"created_by": True})
    with pytest.raises(InvalidInputError):
        service.create(alice, {"title": "Flag", "assigned_to": True})
    assert repo.get_task_by_id(db, task_id)["title"] == "First"


# ---------------- list / getById ----------------

def test_list_visibility(service, alice, bob, admin):
    own = service.create(alice, {"title": "Alice only"})
    shared = service.create(alice, {"title": "For Bob", "assigned_to": bob.id})
    bobs = service.create(bob, {"title": "Bob's"})

    assert {t["id"] for t in service.list(alice)} == {own, shared}
    assert {t["id"] for t in service.list(bob)} == {shared, bobs}
    assert {t["id"] for t in service.list(admin)} == {own, shared, bobs}
    assert service.list(None) == []


def test_list_applies_filters(service, alice):
    service.create(alice, {"title": "Low", "priority": "low"})
    service.create(alice, {"title": "High", "priority": "high"})

    assert [t["title"] for t in service.list(alice, {"priority": "high"})] == ["High"]
    assert service.list(alice, {"status": "completed"}) == []


def test_list_rejects_unknown_status(service, alice):
    with pytest.raises(InvalidInputError):
        service.list(alice, {"status": "done"})


def test_get_by_id_not_found_before_forbidden(service, alice, bob):
    with pytest.raises(NotFoundError):
        service.get_by_id(bob, {"id": 12345})
    with pytest.raises(NotFoundError):
        service.get_by_id(None, {"id": 12345})

    task_id = service.create(alice, {"title": "Private"})
    with pytest.raises(ForbiddenError):
        service.get_by_id(bob, {"id": task_id})
    with pytest.raises(ForbiddenError):
        service.get_by_id(None, {"id": task_id})


def test_get_by_id_for_creator_assignee_admin(service, alice, bob, admin):
    task_id = service.create(alice, {"title": "Shared", "assigned_to": bob.id})
    for caller in (alice, bob, admin):
        assert service.get_by_id(caller, {"id": task_id})["title"] == "Shared"


def test_reads_without_database_are_empty(no_db, alice):
    svc = TaskService(no_db)
    assert svc.list(alice) == []
    assert svc.users(alice) == []
    assert svc.stats(alice) == {"total": 0, "todo": 0, "in_progress": 0, "completed": 0}
    with pytest.raises(NotFoundError):
        svc.get_by_id(alice, {"id": 1})


# ---------------- update ----------------

def test_update_by_creator_logs_snapshot_and_partial_fields(service, db, alice):
    task_id = service.create(alice, {"title": "Draft"})

    result = service.update(alice, {"id": task_id, "status": "in-progress"})
    assert result == {"success": True, "id": task_id}
    assert repo.get_task_by_id(db, task_id)["status"] == "in-progress"

    entries = _audit(db, task_id)
    assert [e["action"] for e in entries] == ["created", "updated"]
    old = json.loads(entries[1]["old_value"])
    assert old["status"] == "todo"
    assert old["title"] == "Draft"
    assert json.loads(entries[1]["new_value"]) == {"status": "in-progress"}


def test_update_by_admin(service, db, alice, admin):
    task_id = service.create(alice, {"title": "Draft"})
    service.update(admin, {"id": task_id, "priority": "high"})

    assert repo.get_task_by_id(db, task_id)["priority"] == "high"
    assert _audit(db, task_id)[-1]["user_id"] == admin.id


def test_assignee_cannot_update(service, db, alice, bob):
    task_id = service.create(alice, {"title": "Assigned", "assigned_to": bob.id})

    with pytest.raises(ForbiddenError):
        service.update(bob, {"id": task_id, "status": "completed"})
    assert repo.get_task_by_id(db, task_id)["status"] == "todo"
    assert len(_audit(db, task_id)) == 1


def test_update_missing_task(service, alice):
    with pytest.raises(NotFoundError):
        service.update(alice, {"id": 999, "title": "Nope"})


def test_update_requires_caller(service, alice):
    task_id = service.create(alice, {"title": "Mine"})
    with pytest.raises(UnauthenticatedError):
        service.update(None, {"id": task_id, "title": "Yours"})


@pytest.mark.parametrize(
    "changes",
    [{}, {"title": None}, {"status": None}, {"title": ""}, {"status": "archived"}],
)
def test_update_rejects_invalid_changes(service, db, alice, changes):
    task_id = service.create(alice, {"title": "Keep"})
    with pytest.raises(InvalidInputError):
        service.update(alice, {"id": task_id, **changes})
    assert len(_audit(db, task_id)) == 1


def test_update_can_unassign(service, db, alice, bob):
    task_id = service.create(alice, {"title": "Hand off", "assigned_to": bob.id})
    service.update(alice, {"id": task_id, "assigned_to": None})
    assert repo.get_task_by_id(db, task_id)["assigned_to"] is None


# ---------------- delete ----------------

def test_delete_scenario(service, db, alice, bob, admin):
    task_id = service.create(alice, {"title": "Fix bug"})
    assert repo.get_task_by_id(db, task_id)["status"] == "todo"
    assert service.list(bob) == []
    assert [t["id"] for t in service.list(admin)] == [task_id]

    assert service.delete(alice, {"id": task_id}) == {"success": True, "id": task_id}

    entries = _audit(db, task_id)
    assert [e["action"] for e in entries] == ["created", "deleted"]
    assert json.loads(entries[-1]["old_value"])["title"] == "Fix bug"
    assert entries[-1]["new_value"] is None

    for caller in (alice, bob, admin, None):
        with pytest.raises(NotFoundError):
            service.get_by_id(caller, {"id": task_id})


def test_delete_forbidden_for_assignee(service, db, alice, bob):
    task_id = service.create(alice, {"title": "Stay", "assigned_to": bob.id})
    with pytest.raises(ForbiddenError):
        service.delete(bob, {"id": task_id})
    assert repo.get_task_by_id(db, task_id) is not None


def test_failed_audit_write_rolls_back_mutation(service, db, alice, monkeypatch):
    task_id = service.create(alice, {"title": "Atomic"})

    def broken_audit(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(repo, "create_audit_log", broken_audit)

    with pytest.raises(StoreError) as excinfo:
        service.delete(alice, {"id": task_id})
    assert excinfo.value.code is ErrorCode.STORE_ERROR
    assert repo.get_task_by_id(db, task_id) is not None

    with pytest.raises(StoreError):
        service.update(alice, {"id": task_id, "title": "Changed"})
    assert repo.get_task_by_id(db, task_id)["title"] == "Atomic"


# ---------------- stats / users / history ----------------

def test_stats_scoped_to_caller(service, db, alice, bob):
    first = service.create(alice, {"title": "A1"})
    service.create(alice, {"title": "A2", "assigned_to": bob.id})
    service.create(bob, {"title": "B1"})
    service.update(alice, {"id": first, "status": "completed"})

    assert service.stats(alice) == {"total": 2, "todo": 1, "in_progress": 0, "completed": 1}
    assert service.stats(bob) == {"total": 2, "todo": 2, "in_progress": 0, "completed": 0}
    assert service.stats(None) == {"total": 3, "todo": 2, "in_progress": 0, "completed": 1}


def test_users_is_unrestricted(service, alice, bob):
    assert {u["open_id"] for u in service.users(None)} == {"alice", "bob"}


def test_history_follows_read_visibility(service, alice, bob):
    task_id = service.create(alice, {"title": "Tracked"})
    service.update(alice, {"id": task_id, "title": "Tracked v2"})

    assert [e["action"] for e in service.history(alice, {"id": task_id})] == ["created", "updated"]
    with pytest.raises(ForbiddenError):
        service.history(bob, {"id": task_id})


def test_service_defaults_to_configured_database(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'default.db'}")
    assert TaskService().db is get_database()
