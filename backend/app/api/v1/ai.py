"""AI assistant endpoints.

POST /api/ai/generate-tasks     — tasks for a project description
POST /api/ai/generate-subtasks  — subtasks for a task title
POST /api/ai/analyze-delays     — analysis of overdue tasks
POST /api/ai/chat               — free-form assistant reply

Unconfigured assistant → 503 on every route. Generation/analysis failures
come back as fallback payloads (``fallback: true``); chat failures are 502.
"""

from __future__ import annotations

from app.agents.planning_assistant import (
    AssistantNotConfiguredError,
    AssistantUpstreamError,
    DelayReport,
    GeneratedSubtask,
    GeneratedTask,
    PlanningAssistant,
)
from app.api.deps import get_assistant, get_current_user
from app.models.user import User
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

router = APIRouter(prefix="/api/ai", tags=["ai"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateTasksRequest(_CamelModel):
    project_description: str | None = None
    context: str | None = None


class GenerateSubtasksRequest(_CamelModel):
    task_title: str | None = None
    task_description: str | None = None


class DelayTaskInput(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    title: str = "Untitled"
    status: str = "todo"
    priority: str = "medium"
    due_date: str | None = None


class AnalyzeDelaysRequest(_CamelModel):
    tasks: list[DelayTaskInput] | None = None
    project_context: str | None = None


class ChatRequest(_CamelModel):
    message: str | None = None
    context: str | None = None


class GenerateTasksResponse(_CamelModel):
    tasks: list[GeneratedTask]
    fallback: bool = False


class GenerateSubtasksResponse(_CamelModel):
    subtasks: list[GeneratedSubtask]
    fallback: bool = False


class AnalyzeDelaysResponse(DelayReport):
    fallback: bool = False


class ChatResponse(BaseModel):
    reply: str


def _unavailable(e: AssistantNotConfiguredError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))


@router.post("/generate-tasks", response_model=GenerateTasksResponse)
async def generate_tasks(
    req: GenerateTasksRequest,
    user: User = Depends(get_current_user),
    assistant: PlanningAssistant = Depends(get_assistant),
) -> GenerateTasksResponse:
    if not (req.project_description or "").strip():
        raise HTTPException(status_code=400, detail="Please provide a project description")
    try:
        outcome = await assistant.generate_tasks(req.project_description, req.context or "")
    except AssistantNotConfiguredError as e:
        raise _unavailable(e) from e
    return GenerateTasksResponse(tasks=outcome.value.tasks, fallback=outcome.fallback)


@router.post("/generate-subtasks", response_model=GenerateSubtasksResponse)
async def generate_subtasks(
    req: GenerateSubtasksRequest,
    user: User = Depends(get_current_user),
    assistant: PlanningAssistant = Depends(get_assistant),
) -> GenerateSubtasksResponse:
    if not (req.task_title or "").strip():
        raise HTTPException(status_code=400, detail="Please provide a task title")
    try:
        outcome = await assistant.generate_subtasks(req.task_title, req.task_description or "")
    except AssistantNotConfiguredError as e:
        raise _unavailable(e) from e
    return GenerateSubtasksResponse(subtasks=outcome.value.subtasks, fallback=outcome.fallback)


@router.post(
    "/analyze-delays",
    response_model=AnalyzeDelaysResponse,
    response_model_exclude_none=True,
)
async def analyze_delays(
    req: AnalyzeDelaysRequest,
    user: User = Depends(get_current_user),
    assistant: PlanningAssistant = Depends(get_assistant),
) -> AnalyzeDelaysResponse:
    if not req.tasks:
        raise HTTPException(status_code=400, detail="Please provide tasks to analyze")
    tasks = [t.model_dump(by_alias=True) for t in req.tasks]
    try:
        outcome = await assistant.analyze_delays(tasks, req.project_context or "")
    except AssistantNotConfiguredError as e:
        raise _unavailable(e) from e
    return AnalyzeDelaysResponse(**outcome.value.model_dump(), fallback=outcome.fallback)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    user: User = Depends(get_current_user),
    assistant: PlanningAssistant = Depends(get_assistant),
):
    if not (req.message or "").strip():
        raise HTTPException(status_code=400, detail="Please provide a message")
    try:
        reply = await assistant.chat(req.message, req.context or "")
    except AssistantNotConfiguredError as e:
        return JSONResponse(
            status_code=503,
            content={
                "message": str(e),
                "reply": "AI assistant is currently unavailable. Please add your Anthropic API key to use AI features.",
            },
        )
    except AssistantUpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return ChatResponse(reply=reply)
