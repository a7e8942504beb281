"""Authorization gate for projects and tasks.

Existence is always checked first: a missing entity is a 404 even for
callers who could never see it; 403 is only raised once it is known to exist.
"""

from __future__ import annotations

from app.models.task import Project, ProjectMember, Task
from fastapi import HTTPException
from sqlmodel import Session, select


def is_member(session: Session, project_id: str, user_id: str) -> bool:
    link = session.get(ProjectMember, (project_id, user_id))
    return link is not None


def member_ids(session: Session, project_id: str) -> list[str]:
    """Member ids in join order."""
    stmt = (
        select(ProjectMember.user_id)
        .where(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.added_at)
    )
    return list(session.exec(stmt).all())


def ensure_owner_membership(session: Session, project: Project) -> None:
    """Re-add the owner to the member set if it is missing."""
    if not is_member(session, project.id, project.owner_id):
        session.add(ProjectMember(project_id=project.id, user_id=project.owner_id))


def get_project_for_member(
    session: Session,
    project_id: str,
    user_id: str,
    action: str = "access",
) -> Project:
    project = session.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if not is_member(session, project.id, user_id):
        raise HTTPException(status_code=403, detail=f"Not authorized to {action} this project")
    return project


def get_project_for_owner(
    session: Session,
    project_id: str,
    user_id: str,
    action: str = "update",
) -> Project:
    project = session.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if project.owner_id != user_id:
        raise HTTPException(status_code=403, detail=f"Not authorized to {action} this project")
    return project


def get_task_for_member(
    session: Session,
    task_id: str,
    user_id: str,
    action: str = "access",
) -> Task:
    """Resolve a task and check membership in its parent project."""
    task = session.get(Task, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    if not is_member(session, task.project_id, user_id):
        raise HTTPException(status_code=403, detail=f"Not authorized to {action} this task")
    return task
