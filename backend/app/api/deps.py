"""Shared FastAPI dependencies.

Everything stateful (engine, settings, planning assistant) is built by
``create_app`` and read back from ``request.app.state``.
"""

from __future__ import annotations

from app.agents.planning_assistant import PlanningAssistant
from app.config import Settings
from app.db.database import get_session
from app.models.user import User
from fastapi import Depends, HTTPException, Request
from sqlmodel import Session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_assistant(request: Request) -> PlanningAssistant:
    return request.app.state.assistant


def get_current_user(
    request: Request,
    session: Session = Depends(get_session),
) -> User:
    """Load the caller resolved by BearerAuthMiddleware."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authorized, user not found")
    return user
