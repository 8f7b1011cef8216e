"""Task operations as seen by a caller.

Each method validates its payload, checks the caller against the access
policy and then talks to the task store. Mutations write their audit entry in
the same transaction as the change itself, so a task is never changed without
a matching audit row.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from taskboard import policy
from taskboard.auth import Caller
from taskboard.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
    store_errors,
)
from taskboard.schemas import (
    AuditAction,
    TaskCreateRequest,
    TaskIdRequest,
    TaskListRequest,
    TaskStatus,
    TaskUpdateRequest,
)
from taskboard.tasks import repo
from taskboard.tasks.db import Database, get_database
from taskboard.tasks.filters import TaskFilter

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Payload = Union[Mapping[str, Any], BaseModel, None]


def _parse(model: Type[ModelT], payload: Payload) -> ModelT:
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return model.model_validate(dict(payload or {}))
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        message = "; ".join(f"{'.'.join(str(p) for p in e['loc']) or 'input'}: {e['msg']}" for e in errors)
        raise InvalidInputError(message, errors=errors) from exc


def _snapshot(value: Mapping[str, Any]) -> str:
    return json.dumps(value, default=str, sort_keys=True)


def _require_caller(caller: Optional[Caller]) -> Caller:
    if caller is None:
        raise UnauthenticatedError()
    return caller


class TaskService:
    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_database()

    # ==================== Reads ====================

    def list(self, caller: Optional[Caller], payload: Payload = None) -> List[Dict[str, Any]]:
        """Tasks matching the filters that the caller may see."""
        req = _parse(TaskListRequest, payload)
        with store_errors("task.list"):
            tasks = repo.get_tasks(self.db, TaskFilter.from_mapping(req.model_dump()))
        return policy.visible_tasks(caller, tasks)

    def get_by_id(self, caller: Optional[Caller], payload: Payload) -> Dict[str, Any]:
        req = _parse(TaskIdRequest, payload)
        return self._get_visible(caller, req.id, "task.getById")

    def history(self, caller: Optional[Caller], payload: Payload) -> List[Dict[str, Any]]:
        """Audit entries of a task the caller may see, oldest first."""
        req = _parse(TaskIdRequest, payload)
        self._get_visible(caller, req.id, "task.history")
        with store_errors("task.history"):
            return repo.get_audit_logs(self.db, req.id)

    def stats(self, caller: Optional[Caller]) -> Dict[str, int]:
        """Status counts, scoped to the caller's tasks when signed in."""
        user_id = caller.id if caller is not None else None
        with store_errors("task.stats"):
            return repo.get_task_statistics(self.db, user_id).to_dict()

    def users(self, caller: Optional[Caller]) -> List[Dict[str, Any]]:
        # TODO: restrict to signed-in callers once the product decides who may browse the user list.
        with store_errors("task.users"):
            return repo.get_all_users(self.db)

    # ==================== Mutations ====================

    def create(self, caller: Optional[Caller], payload: Payload) -> int:
        """Create a task owned by the caller and return its id."""
        caller = _require_caller(caller)
        req = _parse(TaskCreateRequest, payload)

        values = req.model_dump()
        values["status"] = TaskStatus.TODO.value
        values["created_by"] = caller.id

        with store_errors("task.create"), self.db.transaction() as s:
            task = repo.create_task(self.db, values, session=s)
            repo.create_audit_log(
                self.db,
                {
                    "task_id": task["id"],
                    "user_id": caller.id,
                    "action": AuditAction.CREATED,
                    "new_value": _snapshot(req.model_dump(mode="json")),
                },
                session=s,
            )

        logger.info("Task %s created by user %s", task["id"], caller.id)
        return int(task["id"])

    def update(self, caller: Optional[Caller], payload: Payload) -> Dict[str, Any]:
        caller = _require_caller(caller)
        req = _parse(TaskUpdateRequest, payload)
        task = self._get_modifiable(caller, req.id, "task.update")
        changes = req.changes()

        with store_errors("task.update"), self.db.transaction() as s:
            updated = repo.update_task(self.db, req.id, changes, session=s)
            if updated is None:
                # Deleted between the check and the write.
                raise NotFoundError()
            repo.create_audit_log(
                self.db,
                {
                    "task_id": req.id,
                    "user_id": caller.id,
                    "action": AuditAction.UPDATED,
                    "old_value": _snapshot(task),
                    "new_value": _snapshot(req.model_dump(mode="json", exclude_unset=True, exclude={"id"})),
                },
                session=s,
            )

        logger.info("Task %s updated by user %s (%s)", req.id, caller.id, ", ".join(sorted(changes)))
        return {"success": True, "id": req.id}

    def delete(self, caller: Optional[Caller], payload: Payload) -> Dict[str, Any]:
        caller = _require_caller(caller)
        req = _parse(TaskIdRequest, payload)
        task = self._get_modifiable(caller, req.id, "task.delete")

        with store_errors("task.delete"), self.db.transaction() as s:
            # Audit row first so the snapshot is written while the task still exists.
            repo.create_audit_log(
                self.db,
                {
                    "task_id": req.id,
                    "user_id": caller.id,
                    "action": AuditAction.DELETED,
                    "old_value": _snapshot(task),
                },
                session=s,
            )
            if not repo.delete_task(self.db, req.id, session=s):
                raise NotFoundError()

        logger.info("Task %s deleted by user %s", req.id, caller.id)
        return {"success": True, "id": req.id}

    # ==================== Helpers ====================

    def _load(self, task_id: int, operation: str) -> Dict[str, Any]:
        with store_errors(operation):
            task = repo.get_task_by_id(self.db, task_id)
        if task is None:
            raise NotFoundError()
        return task

    def _get_visible(self, caller: Optional[Caller], task_id: int, operation: str) -> Dict[str, Any]:
        task = self._load(task_id, operation)
        if not policy.can_view(caller, task):
            raise ForbiddenError()
        return task

    def _get_modifiable(self, caller: Caller, task_id: int, operation: str) -> Dict[str, Any]:
        task = self._load(task_id, operation)
        if not policy.can_modify(caller, task):
            raise ForbiddenError()
        return task
