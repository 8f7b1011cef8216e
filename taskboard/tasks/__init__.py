"""Task store - persistence for users, tasks and the task audit log.

This package provides:
- Lazily connected database handle (SQLite or PostgreSQL via DATABASE_URL)
- Database models for users, tasks, assignments and audit entries
- Repository functions for CRUD operations and dashboard statistics
"""

from .db import Database, get_database, reset_database
from .filters import TaskFilter
from .repo import (
    upsert_user,
    get_user_by_open_id,
    get_user_by_id,
    get_all_users,
    get_tasks,
    get_task_by_id,
    create_task,
    update_task,
    delete_task,
    get_task_statistics,
    create_audit_log,
    get_audit_logs,
)

__all__ = [
    "Database",
    "get_database",
    "reset_database",
    "TaskFilter",
    "upsert_user",
    "get_user_by_open_id",
    "get_user_by_id",
    "get_all_users",
    "get_tasks",
    "get_task_by_id",
    "create_task",
    "update_task",
    "delete_task",
    "get_task_statistics",
    "create_audit_log",
    "get_audit_logs",
]
