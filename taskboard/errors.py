"""Error taxonomy for task operations.

Every failure surfaced to a caller is a ``TaskboardError`` carrying one of the
``ErrorCode`` values; the UI renders ``code`` and ``message`` as-is.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    VALIDATION = "VALIDATION"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    STORE_ERROR = "STORE_ERROR"


class TaskboardError(Exception):
    code: ErrorCode = ErrorCode.STORE_ERROR
    default_message = "Task operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(TaskboardError):
    code = ErrorCode.NOT_FOUND
    default_message = "Task not found"


class ForbiddenError(TaskboardError):
    code = ErrorCode.FORBIDDEN
    default_message = "You do not have access to this task"


class UnauthenticatedError(TaskboardError):
    code = ErrorCode.UNAUTHENTICATED
    default_message = "Please sign in"


class InvalidInputError(TaskboardError):
    code = ErrorCode.VALIDATION
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class StoreUnavailableError(TaskboardError):
    code = ErrorCode.STORE_UNAVAILABLE
    default_message = "Database not available"


class StoreError(TaskboardError):
    code = ErrorCode.STORE_ERROR
    default_message = "Database error"


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as ``StoreError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Store error during %s", operation)
        raise StoreError(f"Database error during {operation}") from exc
