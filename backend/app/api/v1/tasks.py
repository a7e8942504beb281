"""Task API endpoints — CRUD for board tasks plus per-project statistics.

GET    /api/tasks/project/{project_id} — tasks of a project, by (position, -created_at)
GET    /api/tasks/stats/{project_id}   — counts by status, overdue, high priority
GET    /api/tasks/{id}                 — single task
POST   /api/tasks                      — create a task in a project
PUT    /api/tasks/{id}                 — partial update (only keys present in the body)
DELETE /api/tasks/{id}                 — delete a task

All routes require membership in the task's project.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.api.deps import get_current_user
from app.db.database import get_session
from app.engines.task_stats import TaskStats, compute_task_stats
from app.models.task import Subtask, Task, TaskPriority, TaskStatus, as_utc
from app.models.user import User, UserSummary
from app.security.access import get_project_for_member, get_task_for_member
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlmodel import Session, col, select

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

# Keys that may not be set to null on update
_NON_NULLABLE = ("title", "status", "priority", "subtasks", "position")


# === Request / Response Models ===


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTaskRequest(_CamelModel):
    title: str | None = None
    project: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to: str | None = None
    subtasks: list[Subtask] | None = None
    position: int | None = Field(default=None, ge=0)


class UpdateTaskRequest(_CamelModel):
    """Every field optional; omitted keys leave the stored value untouched."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to: str | None = None
    subtasks: list[Subtask] | None = None
    position: int | None = Field(default=None, ge=0)


class TaskResponse(_CamelModel):
    id: str
    title: str
    description: str
    status: str
    priority: str
    due_date: datetime | None = None
    project: str
    assigned_to: UserSummary | None = None
    created_by: UserSummary | None = None
    subtasks: list[Subtask] = Field(default_factory=list)
    position: int
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    message: str


def _to_responses(session: Session, tasks: list[Task]) -> list[TaskResponse]:
    """Populate assignedTo/createdBy with one user lookup."""
    user_ids = {t.created_by_id for t in tasks} | {t.assigned_to_id for t in tasks if t.assigned_to_id}
    users: dict[str, User] = {}
    if user_ids:
        users = {u.id: u for u in session.exec(select(User).where(col(User.id).in_(user_ids))).all()}

    def summary(user_id: str | None) -> UserSummary | None:
        user = users.get(user_id) if user_id else None
        return UserSummary.from_user(user) if user else None

    return [
        TaskResponse(
            id=t.id,
            title=t.title,
            description=t.description,
            status=t.status,
            priority=t.priority,
            due_date=as_utc(t.due_date),
            project=t.project_id,
            assigned_to=summary(t.assigned_to_id),
            created_by=summary(t.created_by_id),
            subtasks=[Subtask.model_validate(s) for s in t.subtasks or []],
            position=t.position,
            created_at=t.created_at,
            updated_at=t.updated_at,
        )
        for t in tasks
    ]


def _require_user(session: Session, user_id: str) -> None:
    if session.get(User, user_id) is None:
        raise HTTPException(status_code=400, detail=f"Assigned user not found: {user_id}")


# === Endpoints ===


@router.get("/project/{project_id}", response_model=list[TaskResponse])
def list_project_tasks(
    project_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list[TaskResponse]:
    """List a project's tasks sorted by position, newest first within a position."""
    get_project_for_member(session, project_id, user.id)
    stmt = (
        select(Task)
        .where(Task.project_id == project_id)
        .order_by(col(Task.position).asc(), col(Task.created_at).desc())
    )
    return _to_responses(session, list(session.exec(stmt).all()))


@router.get("/stats/{project_id}", response_model=TaskStats)
def get_task_stats(
    project_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> TaskStats:
    get_project_for_member(session, project_id, user.id)
    tasks = session.exec(select(Task).where(Task.project_id == project_id)).all()
    return compute_task_stats(tasks)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> TaskResponse:
    task = get_task_for_member(session, task_id, user.id)
    return _to_responses(session, [task])[0]


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(
    request: CreateTaskRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> TaskResponse:
    """Create a task in a project the caller is a member of."""
    title = (request.title or "").strip()
    if not title or not request.project:
        raise HTTPException(status_code=400, detail="Please provide title and project")

    project = get_project_for_member(session, request.project, user.id, action="create tasks in")
    if request.assigned_to:
        _require_user(session, request.assigned_to)

    task = Task(
        title=title,
        description=(request.description or "").strip(),
        status=request.status or "todo",
        priority=request.priority or "medium",
        due_date=request.due_date,
        project_id=project.id,
        assigned_to_id=request.assigned_to or None,
        created_by_id=user.id,
        subtasks=[s.model_dump() for s in request.subtasks or []],
        position=request.position or 0,
    )
    session.add(task)
    session.commit()
    session.refresh(task)
    return _to_responses(session, [task])[0]


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> TaskResponse:
    """Partial update: a key present in the body is written even when empty or null."""
    task = get_task_for_member(session, task_id, user.id, action="update")

    update_data = request.model_dump(exclude_unset=True)
    for key in _NON_NULLABLE:
        if key in update_data and update_data[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")

    if "title" in update_data:
        title = update_data["title"].strip()
        if not title:
            raise HTTPException(status_code=400, detail="title cannot be empty")
        task.title = title
    if "description" in update_data:
        task.description = (update_data["description"] or "").strip()
    if "status" in update_data:
        task.status = update_data["status"]
    if "priority" in update_data:
        task.priority = update_data["priority"]
    if "due_date" in update_data:
        task.due_date = update_data["due_date"]
    if "assigned_to" in update_data:
        if update_data["assigned_to"]:
            _require_user(session, update_data["assigned_to"])
        task.assigned_to_id = update_data["assigned_to"] or None
    if "subtasks" in update_data:
        task.subtasks = update_data["subtasks"]
    if "position" in update_data:
        task.position = update_data["position"]
    task.updated_at = datetime.now(timezone.utc)

    session.add(task)
    session.commit()
    session.refresh(task)
    return _to_responses(session, [task])[0]


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> MessageResponse:
    task = get_task_for_member(session, task_id, user.id, action="delete")
    session.delete(task)
    session.commit()
    return MessageResponse(message="Task deleted successfully")
