"""Taskboard repository functions.

Reads degrade gracefully when no database is configured (empty results);
writes raise ``StoreUnavailableError``. SQLAlchemy errors propagate.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from taskboard.config import get_config
from taskboard.schemas import AuditAction, UserRole
from taskboard.stats import TaskStatistics, summarize

from .db import Database
from .filters import TaskFilter
from .models import Task, TaskAuditLog, User, utcnow

logger = logging.getLogger(__name__)

_USER_TEXT_FIELDS = ("name", "email", "login_method")
_TASK_FIELDS = ("title", "description", "status", "priority", "created_by", "assigned_to", "due_date")
# created_by is fixed at creation
_TASK_MUTABLE_FIELDS = ("title", "description", "status", "priority", "assigned_to", "due_date")


def _reader(db: Database, what: str) -> Optional[sessionmaker]:
    sm = db.get_sessionmaker()
    if sm is None:
        logger.warning("Cannot %s: database not available", what)
    return sm


# ==================== Users ====================

def upsert_user(db: Database, user: Mapping[str, Any], *, owner_open_id: Optional[str] = None) -> Dict[str, Any]:
    """Insert or update a user keyed on ``open_id`` and return the stored row.

    Only keys present in ``user`` are written. ``last_signed_in`` is always
    refreshed so every sign-in is visible, and the configured owner identity
    becomes admin unless a role is given explicitly.
    """
    open_id = user.get("open_id")
    if not open_id:
        raise ValueError("User open_id is required for upsert")

    if owner_open_id is None:
        owner_open_id = get_config().owner_open_id

    updates: Dict[str, Any] = {f: user[f] for f in _USER_TEXT_FIELDS if f in user}
    role = user.get("role")
    if role is not None:
        updates["role"] = UserRole(role).value
    elif owner_open_id and open_id == owner_open_id:
        updates["role"] = UserRole.ADMIN.value
    updates["last_signed_in"] = user.get("last_signed_in") or utcnow()

    try:
        return _write_user(db, open_id, updates)
    except IntegrityError:
        # Lost an insert race on the unique open_id; the row exists now.
        logger.info("Concurrent insert for user %s, retrying as update", open_id)
        return _write_user(db, open_id, updates)


def _write_user(db: Database, open_id: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
    with db.transaction() as s:
        row = s.execute(select(User).where(User.open_id == open_id)).scalar_one_or_none()
        if row is None:
            row = User(open_id=open_id)
            s.add(row)
        for key, value in updates.items():
            setattr(row, key, value)
        s.flush()
        return row.to_dict()


def get_user_by_open_id(db: Database, open_id: str) -> Optional[Dict[str, Any]]:
    sm = _reader(db, "get user")
    if sm is None:
        return None
    with sm() as s:
        row = s.execute(select(User).where(User.open_id == open_id)).scalar_one_or_none()
        return row.to_dict() if row else None


def get_user_by_id(db: Database, user_id: int) -> Optional[Dict[str, Any]]:
    sm = _reader(db, "get user")
    if sm is None:
        return None
    with sm() as s:
        row = s.get(User, user_id)
        return row.to_dict() if row else None


def get_all_users(db: Database) -> List[Dict[str, Any]]:
    sm = _reader(db, "list users")
    if sm is None:
        return []
    with sm() as s:
        rows = s.execute(select(User).order_by(User.id)).scalars().all()
        return [u.to_dict() for u in rows]


# ==================== Tasks ====================

def get_tasks(db: Database, filters: Optional[TaskFilter] = None) -> List[Dict[str, Any]]:
    sm = _reader(db, "list tasks")
    if sm is None:
        return []
    stmt = (filters or TaskFilter()).apply(select(Task))
    with sm() as s:
        return [t.to_dict() for t in s.execute(stmt).scalars().all()]


def get_task_by_id(db: Database, task_id: int) -> Optional[Dict[str, Any]]:
    sm = _reader(db, "get task")
    if sm is None:
        return None
    with sm() as s:
        t = s.get(Task, task_id)
        return t.to_dict() if t else None


def create_task(db: Database, values: Mapping[str, Any], *, session: Optional[Session] = None) -> Dict[str, Any]:
    """Insert a task and return it, including the generated id."""
    with db.transaction(session) as s:
        t = Task(**{k: values[k] for k in _TASK_FIELDS if k in values})
        s.add(t)
        s.flush()
        return t.to_dict()


def update_task(
    db: Database,
    task_id: int,
    updates: Mapping[str, Any],
    *,
    session: Optional[Session] = None,
) -> Optional[Dict[str, Any]]:
    with db.transaction(session) as s:
        t = s.get(Task, task_id)
        if t is None:
            return None
        for key in _TASK_MUTABLE_FIELDS:
            if key in updates:
                setattr(t, key, updates[key])
        s.flush()
        return t.to_dict()


def delete_task(db: Database, task_id: int, *, session: Optional[Session] = None) -> bool:
    with db.transaction(session) as s:
        t = s.get(Task, task_id)
        if t is None:
            return False
        s.delete(t)
        s.flush()
        return True


def get_task_statistics(db: Database, user_id: Optional[int] = None) -> TaskStatistics:
    """Status counts over all tasks, or only those ``user_id`` created or is assigned."""
    if db.get_sessionmaker() is None:
        return TaskStatistics()
    return summarize(get_tasks(db), user_id)


# ==================== Audit Log ====================

def create_audit_log(db: Database, entry: Mapping[str, Any], *, session: Optional[Session] = None) -> Dict[str, Any]:
    with db.transaction(session) as s:
        row = TaskAuditLog(
            task_id=entry["task_id"],
            user_id=entry["user_id"],
            action=AuditAction(entry["action"]).value,
            old_value=entry.get("old_value"),
            new_value=entry.get("new_value"),
        )
        s.add(row)
        s.flush()
        return row.to_dict()


def get_audit_logs(db: Database, task_id: int) -> List[Dict[str, Any]]:
    sm = _reader(db, "list audit logs")
    if sm is None:
        return []
    with sm() as s:
        rows = s.execute(
            select(TaskAuditLog).where(TaskAuditLog.task_id == task_id).order_by(TaskAuditLog.id)
        ).scalars().all()
        return [r.to_dict() for r in rows]
