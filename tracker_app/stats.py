"""Task statistics shown on the dashboard."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    completion_percentage: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def summarize(tasks: Iterable[Any]) -> TaskStats:
    """
    Count completed and pending tasks.

    Accepts serialised task dicts (as returned by the API) or ``Task`` model
    instances.  ``completed`` is expected to already be a strict bool; only
    ``True`` counts as done.  The percentage is rounded to the nearest
    integer and is ``0`` for an empty list.
    """
    total = 0
    completed = 0
    for task in tasks:
        total += 1
        flag = task.get("completed") if isinstance(task, Mapping) else task.completed
        if flag is True:
            completed += 1

    percentage = round(completed * 100 / total) if total else 0
    return TaskStats(
        total=total,
        completed=completed,
        pending=total - completed,
        completion_percentage=percentage,
    )
