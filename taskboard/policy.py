"""Who may see and change which task.

Pure predicates over the caller (None when signed out) and a task row.
Admins see and change everything. Creators see and change their tasks.
Assignees only see them.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from taskboard.auth import Caller
from taskboard.schemas import UserRole


def is_admin(caller: Optional[Caller]) -> bool:
    return caller is not None and caller.role == UserRole.ADMIN.value


def is_creator(caller: Optional[Caller], task: Mapping[str, Any]) -> bool:
    return caller is not None and task.get("created_by") == caller.id


def is_assignee(caller: Optional[Caller], task: Mapping[str, Any]) -> bool:
    return caller is not None and task.get("assigned_to") == caller.id


def can_view(caller: Optional[Caller], task: Mapping[str, Any]) -> bool:
    return is_admin(caller) or is_creator(caller, task) or is_assignee(caller, task)


def can_modify(caller: Optional[Caller], task: Mapping[str, Any]) -> bool:
    return is_admin(caller) or is_creator(caller, task)


def visible_tasks(caller: Optional[Caller], tasks: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    if is_admin(caller):
        return list(tasks)
    return [t for t in tasks if can_view(caller, t)]
