"""Planning Assistant — task generation, subtask breakdown, delay analysis, chat.

Every generation call is a schema-validated structured completion. When the
model call or the decode fails, the operation returns a fixed fallback
payload wrapped in an AssistantOutcome with ``fallback=True`` instead of
raising; only a missing LLM client (no credential) is an error, and it is
raised before any network call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from app.config import Settings
from app.engines.task_stats import is_overdue
from app.llm.layer import message_text
from app.models.task import TaskPriority
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AssistantNotConfiguredError(RuntimeError):
    """No LLM credential configured; raised before any network call."""


class AssistantUpstreamError(RuntimeError):
    """The LLM call failed and the operation has no fallback."""


# === Output Models ===


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratedTask(_CamelModel):
    title: str = Field(min_length=1)
    description: str = ""
    priority: TaskPriority = "medium"
    estimated_time: str = ""

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class GeneratedTaskList(_CamelModel):
    """5-8 actionable tasks for a project."""

    tasks: list[GeneratedTask] = Field(default_factory=list, min_length=1)


class GeneratedSubtask(_CamelModel):
    title: str = Field(min_length=1)
    completed: bool = False


class GeneratedSubtaskList(_CamelModel):
    """3-6 ordered subtasks breaking down one task."""

    subtasks: list[GeneratedSubtask] = Field(default_factory=list, min_length=1)


class DelayAnalysis(_CamelModel):
    """Causes of the delays, suggestions and a priority recommendation."""

    analysis: str = ""
    suggestions: list[str] = Field(default_factory=list)
    priority_recommendation: str = ""


class DelayReport(_CamelModel):
    has_delays: bool
    overdue_count: int | None = None
    message: str | None = None
    analysis: str | None = None
    suggestions: list[str] = Field(default_factory=list)
    priority_recommendation: str | None = None


@dataclass
class AssistantOutcome(Generic[T]):
    """Result of an assistant operation; ``fallback`` marks the canned payload."""

    value: T
    fallback: bool = False
    reason: str = ""


# === Fallback payloads ===

FALLBACK_TASKS = GeneratedTaskList(tasks=[
    GeneratedTask(
        title="Review generated tasks",
        description="AI response needs manual review",
        priority="medium",
        estimated_time="1 hour",
    ),
])

FALLBACK_SUBTASKS = GeneratedSubtaskList(subtasks=[
    GeneratedSubtask(title="Review task requirements"),
    GeneratedSubtask(title="Plan implementation approach"),
    GeneratedSubtask(title="Execute and test"),
])

FALLBACK_ANALYSIS = DelayAnalysis(
    analysis="Multiple tasks are overdue. Consider reprioritizing and reallocating resources.",
    suggestions=[
        "Review task priorities and adjust accordingly",
        "Break down large tasks into smaller milestones",
        "Consider delegating tasks to team members",
    ],
    priority_recommendation="Focus on high-priority tasks first",
)

NO_DELAYS_MESSAGE = "All tasks are on track! No delays detected."

# === Prompts ===

_TASKS_SYSTEM = "You are a helpful project management assistant that generates structured task lists."
_SUBTASKS_SYSTEM = "You are a helpful assistant that breaks down tasks into smaller subtasks."
_DELAYS_SYSTEM = (
    "You are a project management consultant analyzing task delays and providing practical solutions."
)
_CHAT_SYSTEM = (
    "You are a helpful project management assistant. Help users with task planning, "
    "project organization, and productivity tips."
)


class PlanningAssistant:
    """AI adapter over the LLM layer.

    ``llm`` is None when no credential is configured; every operation then
    raises AssistantNotConfiguredError.
    """

    def __init__(self, llm: Any | None, settings: Settings) -> None:
        self.llm = llm
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return self.llm is not None

    def _require_llm(self) -> Any:
        if self.llm is None:
            raise AssistantNotConfiguredError(
                "AI service is not available. Please configure ANTHROPIC_API_KEY in .env file."
            )
        return self.llm

    async def _structured(
        self,
        prompt: str,
        system: str,
        response_model: type[BaseModel],
        max_tokens: int,
        fallback: BaseModel,
        operation: str,
    ) -> AssistantOutcome:
        llm = self._require_llm()
        try:
            result, meta = await llm.complete_structured(
                messages=[{"role": "user", "content": prompt}],
                model_tier=self.settings.assistant_model_tier,
                response_model=response_model,
                system=system,
                max_tokens=max_tokens,
                temperature=self.settings.assistant_temperature,
            )
        except Exception as e:
            logger.warning("%s failed, returning fallback payload: %s: %s", operation, type(e).__name__, e)
            return AssistantOutcome(value=fallback.model_copy(deep=True), fallback=True, reason=type(e).__name__)
        logger.info("%s completed (model=%s, cost=$%.4f)", operation, meta.model_version, meta.cost)
        return AssistantOutcome(value=result)

    async def generate_tasks(
        self, project_description: str, context: str = ""
    ) -> AssistantOutcome[GeneratedTaskList]:
        """Generate 5-8 actionable tasks for a project description."""
        self._require_llm()
        prompt = (
            "Generate a list of tasks for the following project.\n\n"
            f"Project Description: {project_description}\n"
            + (f"Additional Context: {context}\n" if context else "")
            + "\nGenerate 5-8 actionable tasks. For each give a concise, action-oriented title, "
            "a brief description, a priority (low, medium, high, or urgent) and an estimated "
            "completion time."
        )
        return await self._structured(
            prompt,
            _TASKS_SYSTEM,
            GeneratedTaskList,
            self.settings.assistant_tasks_max_tokens,
            FALLBACK_TASKS,
            "generate_tasks",
        )

    async def generate_subtasks(
        self, task_title: str, task_description: str = ""
    ) -> AssistantOutcome[GeneratedSubtaskList]:
        """Break a task into 3-6 smaller, logically ordered subtasks."""
        self._require_llm()
        prompt = (
            "Break down the following task into smaller, actionable subtasks:\n\n"
            f"Task: {task_title}\n"
            + (f"Description: {task_description}\n" if task_description else "")
            + "\nGenerate 3-6 subtasks that would help complete this main task. Each subtask "
            "should be specific and actionable, smaller in scope than the main task, and "
            "logically ordered."
        )
        return await self._structured(
            prompt,
            _SUBTASKS_SYSTEM,
            GeneratedSubtaskList,
            self.settings.assistant_subtasks_max_tokens,
            FALLBACK_SUBTASKS,
            "generate_subtasks",
        )

    async def analyze_delays(
        self,
        tasks: Iterable[dict[str, Any]],
        project_context: str = "",
        now: datetime | None = None,
    ) -> AssistantOutcome[DelayReport]:
        """Analyze overdue tasks. No LLM call when nothing is overdue."""
        self._require_llm()
        overdue = [t for t in tasks if is_overdue(t, now)]
        if not overdue:
            return AssistantOutcome(value=DelayReport(has_delays=False, message=NO_DELAYS_MESSAGE))

        summary = "\n".join(
            f"- {t.get('title', 'Untitled')} (Priority: {t.get('priority', 'medium')}, "
            f"Due: {t.get('dueDate') or t.get('due_date')})"
            for t in overdue
        )
        prompt = (
            "Analyze the following overdue tasks and provide actionable suggestions to get "
            f"back on track:\n\n{summary}\n\n"
            + (f"Project Context: {project_context}\n\n" if project_context else "")
            + "Provide a brief analysis of potential causes, 3-5 specific, actionable "
            "suggestions to address delays, and a priority recommendation."
        )
        outcome = await self._structured(
            prompt,
            _DELAYS_SYSTEM,
            DelayAnalysis,
            self.settings.assistant_delays_max_tokens,
            FALLBACK_ANALYSIS,
            "analyze_delays",
        )
        analysis: DelayAnalysis = outcome.value
        report = DelayReport(
            has_delays=True,
            overdue_count=len(overdue),
            analysis=analysis.analysis,
            suggestions=analysis.suggestions,
            priority_recommendation=analysis.priority_recommendation,
        )
        return AssistantOutcome(value=report, fallback=outcome.fallback, reason=outcome.reason)

    async def chat(self, message: str, context: str = "") -> str:
        """Free-form assistant reply. Upstream failures raise AssistantUpstreamError."""
        llm = self._require_llm()
        system = _CHAT_SYSTEM + (f" Context: {context}" if context else "")
        try:
            response, _meta = await llm.complete_raw(
                messages=[{"role": "user", "content": message}],
                model_tier=self.settings.assistant_model_tier,
                system=system,
                max_tokens=self.settings.assistant_chat_max_tokens,
                temperature=self.settings.assistant_temperature,
            )
        except Exception as e:
            logger.warning("chat failed: %s: %s", type(e).__name__, e)
            raise AssistantUpstreamError("AI service failed to respond") from e
        return message_text(response)
