"""Task and Project models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field
from sqlalchemy import Index
from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField

TaskStatus = Literal["todo", "in-progress", "done"]
TaskPriority = Literal["low", "medium", "high", "urgent"]

TASK_STATUSES: tuple[str, ...] = ("todo", "in-progress", "done")
HIGH_PRIORITIES = frozenset({"high", "urgent"})

DEFAULT_PROJECT_COLOR = "#3b82f6"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; treat naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Project(SQLModel, table=True):
    """A project grouping tasks, shared between its members."""

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    description: str = ""
    color: str = DEFAULT_PROJECT_COLOR
    owner_id: str = SQLField(foreign_key="app_user.id", index=True)  # immutable
    created_at: datetime = SQLField(default_factory=_utcnow)
    updated_at: datetime = SQLField(default_factory=_utcnow)


class ProjectMember(SQLModel, table=True):
    """Membership link between a project and a user."""

    __tablename__ = "project_member"

    project_id: str = SQLField(foreign_key="project.id", primary_key=True)
    user_id: str = SQLField(foreign_key="app_user.id", primary_key=True, index=True)
    added_at: datetime = SQLField(default_factory=_utcnow)


class Subtask(BaseModel):
    """A checklist item inside a task. Has no identity of its own."""

    title: str = Field(min_length=1)
    completed: bool = False


class Task(SQLModel, table=True):
    """A task within a project, placed on the kanban board by status + position."""

    __table_args__ = (Index("ix_task_project_status", "project_id", "status"),)

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    project_id: str = SQLField(foreign_key="project.id")  # immutable
    title: str
    description: str = ""
    status: str = "todo"  # "todo" | "in-progress" | "done"
    priority: str = "medium"  # "low" | "medium" | "high" | "urgent"
    due_date: datetime | None = None
    assigned_to_id: str | None = SQLField(default=None, foreign_key="app_user.id", index=True)
    created_by_id: str = SQLField(foreign_key="app_user.id")  # immutable
    subtasks: list[dict] = SQLField(default_factory=list, sa_column=Column(JSON))
    position: int = 0  # ordering within a status column only
    created_at: datetime = SQLField(default_factory=_utcnow)
    updated_at: datetime = SQLField(default_factory=_utcnow)
