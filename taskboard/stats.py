"""Dashboard statistics derived from the task set."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Mapping, Optional


@dataclass(frozen=True)
class TaskStatistics:
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def summarize(tasks: Iterable[Mapping[str, Any]], user_id: Optional[int] = None) -> TaskStatistics:
    """Count tasks by status, optionally only those ``user_id`` created or is assigned.

    ``total`` is the size of the (scoped) set. The per-status counts are exact
    matches on the three known statuses, so a task with any other status is
    counted in ``total`` only.
    """
    if user_id is not None:
        tasks = [t for t in tasks if t.get("created_by") == user_id or t.get("assigned_to") == user_id]
    else:
        tasks = list(tasks)

    statuses = [t.get("status") for t in tasks]
    return TaskStatistics(
        total=len(tasks),
        todo=statuses.count("todo"),
        in_progress=statuses.count("in-progress"),
        completed=statuses.count("completed"),
    )
