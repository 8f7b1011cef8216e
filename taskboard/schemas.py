from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator, model_validator


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class AuditAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    ASSIGNED = "assigned"


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Stored timestamps are naive UTC.
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ==================== Request Models ====================

class TaskListRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[StrictInt] = None
    created_by: Optional[StrictInt] = None


class TaskIdRequest(BaseModel):
    id: StrictInt


class TaskCreateRequest(BaseModel):
    """Fields a caller may submit for a new task.

    Anything else (``status``, ``created_by``...) is dropped: new tasks always
    start as ``todo`` and belong to the caller.
    """

    model_config = ConfigDict(use_enum_values=True, extra="ignore")

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, validate_default=True)
    due_date: Optional[datetime] = None
    assigned_to: Optional[StrictInt] = None

    normalize_due_date = field_validator("due_date")(_naive_utc)


class TaskUpdateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="ignore")

    id: StrictInt
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[StrictInt] = None

    normalize_due_date = field_validator("due_date")(_naive_utc)

    @model_validator(mode="after")
    def _check_fields(self) -> "TaskUpdateRequest":
        provided = self.model_fields_set - {"id"}
        if not provided:
            raise ValueError("no fields to update")
        for name in ("title", "status", "priority"):
            if name in provided and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually submitted."""
        return self.model_dump(exclude_unset=True, exclude={"id"})
