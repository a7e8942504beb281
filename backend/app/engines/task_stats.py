"""Task statistics — pure aggregation over a project's tasks."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from app.models.task import HIGH_PRIORITIES, as_utc
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TaskStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    todo: int = 0
    in_progress: int = 0
    done: int = 0
    overdue: int = 0
    high_priority: int = 0


def _field(task: Any, name: str, alias: str) -> Any:
    if isinstance(task, dict):
        return task.get(alias, task.get(name))
    return getattr(task, name, None)


def _parse_due(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None


def is_overdue(task: Any, now: datetime | None = None) -> bool:
    """Due date strictly in the past and not done.

    Accepts Task rows or plain dicts (camelCase or snake_case keys).
    """
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    due = _parse_due(_field(task, "due_date", "dueDate"))
    if due is None:
        return False
    return due < now and _field(task, "status", "status") != "done"


def compute_task_stats(tasks: Iterable[Any], now: datetime | None = None) -> TaskStats:
    now = now or datetime.now(timezone.utc)
    stats = TaskStats()
    for task in tasks:
        status = _field(task, "status", "status")
        stats.total += 1
        if status == "todo":
            stats.todo += 1
        elif status == "in-progress":
            stats.in_progress += 1
        elif status == "done":
            stats.done += 1
        if is_overdue(task, now):
            stats.overdue += 1
        if _field(task, "priority", "priority") in HIGH_PRIORITIES:
            stats.high_priority += 1
    return stats
