"""Kanban board ordering.

Columns are keyed by task status and ordered by ``position``. A move is
planned entirely on the client side: the moved task is spliced into its new
slot and every task left in an affected column gets its zero-based index as
the new position. Positions are therefore only meaningful inside a column and
are not guaranteed unique or gap-free in storage.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from app.models.task import TASK_STATUSES

Columns = dict[str, list[dict[str, Any]]]


@dataclass(frozen=True)
class BoardMove:
    """A drag from (source column, index) to (destination column, index).

    ``destination_status`` is None when the card was dropped outside any column.
    """

    task_id: str
    source_status: str
    source_index: int
    destination_status: str | None
    destination_index: int = 0


@dataclass(frozen=True)
class PositionUpdate:
    task_id: str
    position: int
    status: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"position": self.position}
        if self.status is not None:
            payload["status"] = self.status
        return payload


@dataclass
class MovePlan:
    columns: Columns
    updates: list[PositionUpdate] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.updates


def organize_columns(tasks: Iterable[dict[str, Any]]) -> Columns:
    """Group tasks by status, each column sorted by position (stable)."""
    columns: Columns = {status: [] for status in TASK_STATUSES}
    for task in tasks:
        status = task.get("status")
        if status in columns:
            columns[status].append(task)
    for status, column in columns.items():
        columns[status] = sorted(column, key=lambda t: t.get("position") or 0)
    return columns


def plan_move(columns: Columns, move: BoardMove) -> MovePlan:
    """Compute the new columns and the position writes for a move.

    The input columns are not mutated.
    """
    if move.destination_status is None:
        return MovePlan(columns=columns)
    if (
        move.source_status == move.destination_status
        and move.source_index == move.destination_index
    ):
        return MovePlan(columns=columns)
    if move.source_status not in columns or move.destination_status not in columns:
        raise ValueError(f"Unknown column in move: {move.source_status!r} -> {move.destination_status!r}")

    source = list(columns[move.source_status])
    if not 0 <= move.source_index < len(source):
        raise IndexError(f"Source index {move.source_index} out of range for {move.source_status!r}")
    task = source[move.source_index]
    if task.get("id") != move.task_id:
        raise ValueError(f"Task {move.task_id} is not at index {move.source_index} of {move.source_status!r}")
    if move.destination_index < 0:
        raise IndexError(f"Destination index {move.destination_index} out of range for {move.destination_status!r}")

    new_columns = dict(columns)

    if move.source_status == move.destination_status:
        source.pop(move.source_index)
        source.insert(move.destination_index, task)
        reordered = [{**t, "position": i} for i, t in enumerate(source)]
        new_columns[move.source_status] = reordered
        updates = [PositionUpdate(task_id=t["id"], position=i) for i, t in enumerate(source)]
        return MovePlan(columns=new_columns, updates=updates)

    destination = list(columns[move.destination_status])
    source.pop(move.source_index)
    destination.insert(move.destination_index, {**task, "status": move.destination_status})

    new_columns[move.source_status] = [{**t, "position": i} for i, t in enumerate(source)]
    new_columns[move.destination_status] = [{**t, "position": i} for i, t in enumerate(destination)]

    updates = [PositionUpdate(task_id=t["id"], position=i) for i, t in enumerate(source)]
    for i, t in enumerate(destination):
        status = move.destination_status if t["id"] == move.task_id else None
        updates.append(PositionUpdate(task_id=t["id"], position=i, status=status))
    return MovePlan(columns=new_columns, updates=updates)
