"""Project API endpoints — CRUD plus member management.

GET    /api/projects                          — projects the caller is a member of (newest first)
GET    /api/projects/{id}                     — single project (members only)
POST   /api/projects                          — create; caller becomes owner and first member
PUT    /api/projects/{id}                     — update name/description/color (owner only)
DELETE /api/projects/{id}                     — delete project and its tasks (owner only)
POST   /api/projects/{id}/members             — add a member by email (owner only)
DELETE /api/projects/{id}/members/{user_id}   — remove a member (owner only)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.api.deps import get_current_user, get_settings
from app.config import Settings
from app.db.database import get_session
from app.models.task import Project, ProjectMember, Task
from app.models.user import User, UserSummary
from app.security.access import (
    ensure_owner_membership,
    get_project_for_member,
    get_project_for_owner,
    member_ids,
)
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session, col, select

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


# === Request / Response Models ===


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateProjectRequest(_CamelModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None


class UpdateProjectRequest(_CamelModel):
    """All fields optional. name/color coalesce falsy values to the previous value."""

    name: str | None = None
    description: str | None = None
    color: str | None = None


class AddMemberRequest(_CamelModel):
    email: str | None = None


class ProjectResponse(_CamelModel):
    id: str
    name: str
    description: str
    color: str
    owner: UserSummary
    members: list[UserSummary]
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    message: str


def _users_by_id(session: Session, user_ids: list[str]) -> dict[str, User]:
    if not user_ids:
        return {}
    users = session.exec(select(User).where(col(User.id).in_(user_ids))).all()
    return {u.id: u for u in users}


def to_project_response(session: Session, project: Project) -> ProjectResponse:
    """Populate owner and members."""
    ids = member_ids(session, project.id)
    users = _users_by_id(session, list({*ids, project.owner_id}))
    return ProjectResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        color=project.color,
        owner=UserSummary.from_user(users[project.owner_id]),
        members=[UserSummary.from_user(users[uid]) for uid in ids if uid in users],
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


# === Endpoints ===


@router.get("", response_model=list[ProjectResponse])
def list_projects(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list[ProjectResponse]:
    """List projects where the caller is a member, newest first."""
    stmt = (
        select(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .where(ProjectMember.user_id == user.id)
        .order_by(col(Project.created_at).desc())
    )
    projects = session.exec(stmt).all()
    return [to_project_response(session, p) for p in projects]


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> ProjectResponse:
    project = get_project_for_member(session, project_id, user.id)
    return to_project_response(session, project)


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    request: CreateProjectRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ProjectResponse:
    """Create a project owned by the caller, who is also its first member."""
    name = (request.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Please provide a project name")

    project = Project(
        name=name,
        description=(request.description or "").strip(),
        color=request.color or settings.default_project_color,
        owner_id=user.id,
    )
    session.add(project)
    session.flush()
    session.add(ProjectMember(project_id=project.id, user_id=user.id))
    session.commit()
    session.refresh(project)
    logger.info("Project %s created by %s", project.id, user.id)
    return to_project_response(session, project)


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    request: UpdateProjectRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> ProjectResponse:
    """Update a project (owner only).

    Missing or falsy name/color keep the previous value; description is set
    whenever it is present in the body, including "".
    """
    project = get_project_for_owner(session, project_id, user.id, action="update")

    project.name = (request.name or "").strip() or project.name
    if "description" in request.model_fields_set:
        project.description = (request.description or "").strip()
    project.color = request.color or project.color
    project.updated_at = datetime.now(timezone.utc)

    ensure_owner_membership(session, project)
    session.add(project)
    session.commit()
    session.refresh(project)
    return to_project_response(session, project)


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> MessageResponse:
    """Delete a project with its tasks and memberships in one transaction."""
    project = get_project_for_owner(session, project_id, user.id, action="delete")

    for task in session.exec(select(Task).where(Task.project_id == project.id)).all():
        session.delete(task)
    for link in session.exec(select(ProjectMember).where(ProjectMember.project_id == project.id)).all():
        session.delete(link)
    session.flush()
    session.delete(project)
    session.commit()
    logger.info("Project %s and its tasks deleted by %s", project_id, user.id)
    return MessageResponse(message="Project and associated tasks deleted successfully")


@router.post("/{project_id}/members", response_model=ProjectResponse)
def add_member(
    project_id: str,
    request: AddMemberRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> ProjectResponse:
    """Add an existing user to the project by email (owner only). Idempotent."""
    email = (request.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="Please provide the member's email")

    project = get_project_for_owner(session, project_id, user.id, action="manage members of")
    member = session.exec(select(User).where(User.email == email)).first()
    if member is None:
        raise HTTPException(status_code=404, detail="User not found")

    if session.get(ProjectMember, (project.id, member.id)) is None:
        session.add(ProjectMember(project_id=project.id, user_id=member.id))
        session.commit()
    return to_project_response(session, project)


@router.delete("/{project_id}/members/{member_id}", response_model=ProjectResponse)
def remove_member(
    project_id: str,
    member_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> ProjectResponse:
    """Remove a member (owner only). The owner cannot be removed."""
    project = get_project_for_owner(session, project_id, user.id, action="manage members of")
    if member_id == project.owner_id:
        raise HTTPException(status_code=400, detail="The project owner cannot be removed")

    link = session.get(ProjectMember, (project.id, member_id))
    if link is None:
        raise HTTPException(status_code=404, detail="Member not found")
    session.delete(link)
    session.commit()
    return to_project_response(session, project)
