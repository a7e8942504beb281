"""Tests for KanbanBoard optimistic moves against the in-process app."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ANTHROPIC_API_KEY", "test")

from unittest.mock import AsyncMock

import httpx
import pytest
from app.client.api_client import PlanboardAPIError, PlanboardClient
from app.client.board import KanbanBoard


async def _seeded_board(app):
    """Client, board and a project with todo [a, b, c] and in-progress [x]."""
    client = PlanboardClient("http://testserver", transport=httpx.ASGITransport(app=app))
    await client.register("Ada", "ada@example.com", "secret1")
    project = await client.create_project("Board")
    ids = {}
    for position, title in enumerate(["a", "b", "c"]):
        ids[title] = (await client.create_task(project["id"], title, position=position))["id"]
    ids["x"] = (await client.create_task(project["id"], "x", status="in-progress"))["id"]

    board = KanbanBoard(client, project["id"])
    await board.refresh()
    return client, board, ids


def _titles(column):
    return [t["title"] for t in column]


@pytest.mark.asyncio
async def test_refresh_builds_columns(app):
    client, board, ids = await _seeded_board(app)
    async with client:
        assert _titles(board.columns["todo"]) == ["a", "b", "c"]
        assert _titles(board.columns["in-progress"]) == ["x"]
        assert board.columns["done"] == []
        assert board.locate(ids["c"]) == ("todo", 2)
        with pytest.raises(KeyError):
            board.locate("missing")


@pytest.mark.asyncio
async def test_move_within_column_persists_positions(app):
    client, board, ids = await _seeded_board(app)
    async with client:
        result = await board.move(ids["c"], "todo", 0)
        assert result.ok
        assert len(result.updates) == 3
        assert _titles(board.columns["todo"]) == ["c", "a", "b"]

        await board.refresh()
        assert _titles(board.columns["todo"]) == ["c", "a", "b"]
        assert [t["position"] for t in board.columns["todo"]] == [0, 1, 2]
    print("  PASS: move_within_column_persists_positions")


@pytest.mark.asyncio
async def test_move_across_columns_persists_status(app):
    client, board, ids = await _seeded_board(app)
    async with client:
        result = await board.move(ids["a"], "in-progress", 0)
        assert result.ok

        moved = await client.get_task(ids["a"])
        assert moved["status"] == "in-progress"
        assert moved["position"] == 0

        await board.refresh()
        assert _titles(board.columns["todo"]) == ["b", "c"]
        assert _titles(board.columns["in-progress"]) == ["a", "x"]
        assert [t["position"] for t in board.columns["todo"]] == [0, 1]


@pytest.mark.asyncio
async def test_noop_moves_issue_no_writes(app):
    client, board, ids = await _seeded_board(app)
    async with client:
        client.update_task = AsyncMock()
        assert (await board.move(ids["b"], "todo", 1)).updates == []
        assert (await board.move(ids["b"], None, 0)).updates == []
        client.update_task.assert_not_called()


@pytest.mark.asyncio
async def test_partial_failure_is_reported_not_rolled_back(app):
    client, board, ids = await _seeded_board(app)
    async with client:
        real_update = client.update_task

        async def flaky_update(task_id, updates):
            if task_id == ids["b"]:
                raise PlanboardAPIError(500, "Internal Server Error")
            return await real_update(task_id, updates)

        client.update_task = flaky_update
        result = await board.move(ids["c"], "todo", 0)

        assert result.ok is False
        assert result.failed_task_ids == [ids["b"]]
        # Local order keeps the optimistic result
        assert _titles(board.columns["todo"]) == ["c", "a", "b"]

        # Stored positions: c=0, a=1, b still 1 from creation
        stored = {t["title"]: t["position"] for t in await client.list_tasks(board.project_id)}
        assert stored["c"] == 0
        assert stored["a"] == 1
        assert stored["b"] == 1
