from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy import Select

from .models import Task


@dataclass(frozen=True)
class TaskFilter:
    """Column filters for task queries, combined with AND.

    A field left as None imposes no constraint.
    """

    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[int] = None
    created_by: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "TaskFilter":
        data = data or {}
        return cls(
            status=data.get("status"),
            priority=data.get("priority"),
            assigned_to=data.get("assigned_to"),
            created_by=data.get("created_by"),
        )

    def apply(self, stmt: Select) -> Select:
        if self.status is not None:
            stmt = stmt.where(Task.status == self.status)
        if self.priority is not None:
            stmt = stmt.where(Task.priority == self.priority)
        if self.assigned_to is not None:
            stmt = stmt.where(Task.assigned_to == self.assigned_to)
        if self.created_by is not None:
            stmt = stmt.where(Task.created_by == self.created_by)
        return stmt
