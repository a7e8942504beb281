"""Tests for PlanningAssistant with MockLLMLayer."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ANTHROPIC_API_KEY", "test")

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from app.agents.planning_assistant import (
    FALLBACK_ANALYSIS,
    FALLBACK_SUBTASKS,
    FALLBACK_TASKS,
    NO_DELAYS_MESSAGE,
    AssistantNotConfiguredError,
    AssistantUpstreamError,
    DelayAnalysis,
    GeneratedTask,
    GeneratedTaskList,
    PlanningAssistant,
)
from app.config import Settings
from app.llm.mock_layer import MockLLMLayer, MockMessage

NOW = datetime(2026, 3, 10, tzinfo=timezone.utc)


def _assistant(responses=None, failures=None, **settings_overrides):
    settings = Settings(anthropic_api_key="test", **settings_overrides)
    return PlanningAssistant(MockLLMLayer(responses, failures), settings)


# === Not configured ===


@pytest.mark.asyncio
async def test_unconfigured_fails_before_any_call():
    assistant = PlanningAssistant(None, Settings(anthropic_api_key=""))
    assert assistant.is_configured is False
    for call in (
        assistant.generate_tasks("A todo app"),
        assistant.generate_subtasks("Write docs"),
        assistant.analyze_delays([]),
        assistant.chat("hi"),
    ):
        with pytest.raises(AssistantNotConfiguredError):
            await call


@pytest.mark.asyncio
async def test_unconfigured_analysis_fails_even_without_overdue_tasks():
    assistant = PlanningAssistant(None, Settings(anthropic_api_key=""))
    with pytest.raises(AssistantNotConfiguredError):
        await assistant.analyze_delays([{"title": "ok", "status": "done"}])


# === generate_tasks ===


@pytest.mark.asyncio
async def test_generate_tasks_returns_model_output():
    tasks = GeneratedTaskList(tasks=[GeneratedTask(title="Plan sprint", priority="high")])
    assistant = _assistant({"sonnet:GeneratedTaskList": tasks})
    outcome = await assistant.generate_tasks("A todo app")
    assert outcome.fallback is False
    assert outcome.value.tasks[0].title == "Plan sprint"
    call = assistant.llm.call_log[0]
    assert "Additional Context" not in call["messages"][0]["content"]
    assert call["system"].startswith("You are a helpful project management assistant")


@pytest.mark.asyncio
async def test_generate_tasks_fallback_on_failure():
    assistant = _assistant(failures={"sonnet:GeneratedTaskList": ValueError("no JSON")})
    outcome = await assistant.generate_tasks("A todo app")
    assert outcome.fallback is True
    assert outcome.reason == "ValueError"
    assert outcome.value == FALLBACK_TASKS
    # Fallback is a copy; callers cannot corrupt the shared constant
    assert outcome.value is not FALLBACK_TASKS


@pytest.mark.asyncio
async def test_generate_tasks_uses_configured_tier():
    tasks = GeneratedTaskList(tasks=[GeneratedTask(title="Cheap")])
    assistant = _assistant({"haiku:GeneratedTaskList": tasks}, assistant_model_tier="haiku")
    outcome = await assistant.generate_tasks("A todo app")
    assert outcome.value.tasks[0].title == "Cheap"
    assert assistant.llm.call_log[0]["model_tier"] == "haiku"


def test_generated_task_priority_normalized():
    assert GeneratedTask(title="x", priority=" HIGH ").priority == "high"


# === generate_subtasks ===


@pytest.mark.asyncio
async def test_generate_subtasks_fallback_on_failure():
    assistant = _assistant(failures={"sonnet:GeneratedSubtaskList": RuntimeError("timeout")})
    outcome = await assistant.generate_subtasks("Write docs", "user guide")
    assert outcome.fallback is True
    assert outcome.value == FALLBACK_SUBTASKS
    assert all(s.completed is False for s in outcome.value.subtasks)


@pytest.mark.asyncio
async def test_generate_subtasks_prompt_includes_description():
    assistant = _assistant()
    await assistant.generate_subtasks("Write docs", "user guide")
    prompt = assistant.llm.call_log[0]["messages"][0]["content"]
    assert "Task: Write docs" in prompt
    assert "Description: user guide" in prompt
    assert assistant.llm.call_log[0]["max_tokens"] == 500


# === analyze_delays ===


@pytest.mark.asyncio
async def test_analyze_delays_short_circuits_without_overdue():
    assistant = _assistant()
    outcome = await assistant.analyze_delays(
        [{"title": "later", "status": "todo", "dueDate": "2026-04-01T00:00:00Z"}],
        now=NOW,
    )
    assert outcome.value.has_delays is False
    assert outcome.value.message == NO_DELAYS_MESSAGE
    assert outcome.value.overdue_count is None
    assert assistant.llm.call_log == []


@pytest.mark.asyncio
async def test_analyze_delays_reports_overdue_count():
    analysis = DelayAnalysis(analysis="Blocked on review", suggestions=["Pair up"], priority_recommendation="Unblock")
    assistant = _assistant({"sonnet:DelayAnalysis": analysis})
    outcome = await assistant.analyze_delays(
        [
            {"title": "late one", "status": "todo", "dueDate": "2026-03-01T00:00:00Z"},
            {"title": "late two", "status": "in-progress", "due_date": "2026-03-02T00:00:00Z"},
            {"title": "finished", "status": "done", "dueDate": "2026-03-01T00:00:00Z"},
        ],
        project_context="Q1 launch",
        now=NOW,
    )
    report = outcome.value
    assert report.has_delays is True
    assert report.overdue_count == 2
    assert report.analysis == "Blocked on review"
    assert report.suggestions == ["Pair up"]
    assert report.priority_recommendation == "Unblock"
    prompt = assistant.llm.call_log[0]["messages"][0]["content"]
    assert "late one" in prompt and "late two" in prompt
    assert "finished" not in prompt
    assert "Project Context: Q1 launch" in prompt


@pytest.mark.asyncio
async def test_analyze_delays_fallback_keeps_overdue_count():
    assistant = _assistant(failures={"sonnet:DelayAnalysis": RuntimeError("bad")})
    outcome = await assistant.analyze_delays(
        [{"title": "late", "status": "todo", "dueDate": "2026-03-01T00:00:00Z"}],
        now=NOW,
    )
    assert outcome.fallback is True
    assert outcome.value.has_delays is True
    assert outcome.value.overdue_count == 1
    assert outcome.value.analysis == FALLBACK_ANALYSIS.analysis
    assert outcome.value.suggestions == FALLBACK_ANALYSIS.suggestions


# === chat ===


@pytest.mark.asyncio
async def test_chat_returns_text():
    assistant = _assistant({"sonnet:raw": MockMessage("Use a kanban board.")})
    assert await assistant.chat("How should I organize?") == "Use a kanban board."
    assert assistant.llm.call_log[0]["max_tokens"] == 500


@pytest.mark.asyncio
async def test_chat_wraps_upstream_errors():
    llm = MockLLMLayer()
    llm.complete_raw = AsyncMock(side_effect=ConnectionError("reset"))
    assistant = PlanningAssistant(llm, Settings(anthropic_api_key="test"))
    with pytest.raises(AssistantUpstreamError):
        await assistant.chat("hi")
