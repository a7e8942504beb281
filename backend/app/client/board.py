"""Client-side kanban board with optimistic moves.

A move updates the local columns first, then persists one position write per
affected task, all concurrently. Nothing is rolled back on failure: failed
writes are logged and reported in the MoveResult, and the next ``refresh()``
re-sorts on whatever positions actually persisted.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from app.client.api_client import PlanboardClient
from app.engines.board import BoardMove, Columns, PositionUpdate, organize_columns, plan_move

logger = logging.getLogger(__name__)


@dataclass
class MoveResult:
    updates: list[PositionUpdate] = field(default_factory=list)
    failed_task_ids: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_task_ids


class KanbanBoard:
    """Board state for one project."""

    def __init__(self, client: PlanboardClient, project_id: str) -> None:
        self.client = client
        self.project_id = project_id
        self.columns: Columns = organize_columns([])

    async def refresh(self) -> Columns:
        tasks = await self.client.list_tasks(self.project_id)
        self.columns = organize_columns(tasks)
        return self.columns

    def locate(self, task_id: str) -> tuple[str, int]:
        """Return (status, index) of a task on the board."""
        for status, column in self.columns.items():
            for index, task in enumerate(column):
                if task["id"] == task_id:
                    return status, index
        raise KeyError(task_id)

    async def move(self, task_id: str, destination_status: str | None, destination_index: int) -> MoveResult:
        """Move a card and persist the resulting positions."""
        source_status, source_index = self.locate(task_id)
        plan = plan_move(
            self.columns,
            BoardMove(
                task_id=task_id,
                source_status=source_status,
                source_index=source_index,
                destination_status=destination_status,
                destination_index=destination_index,
            ),
        )
        if plan.is_noop:
            return MoveResult()

        self.columns = plan.columns
        results = await asyncio.gather(
            *(self.client.update_task(u.task_id, u.to_payload()) for u in plan.updates),
            return_exceptions=True,
        )

        failed = [u.task_id for u, r in zip(plan.updates, results) if isinstance(r, Exception)]
        if failed:
            logger.warning(
                "Board move of %s: %d/%d position writes failed (%s); board resyncs on next refresh",
                task_id, len(failed), len(plan.updates), ", ".join(failed),
            )
        return MoveResult(updates=plan.updates, failed_task_ids=failed)
