"""Authentication endpoints — register, login, current user."""

from __future__ import annotations

import logging

from app.api.deps import get_current_user, get_settings
from app.config import Settings
from app.db.database import get_session
from app.models.user import User, UserSummary
from app.security.access_token import issue_access_token
from app.security.passwords import hash_password, verify_password
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

_MIN_PASSWORD_LENGTH = 6


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class AuthResponse(UserSummary):
    token: str


def _issue(user: User, settings: Settings) -> AuthResponse:
    token = issue_access_token(
        secret_key=settings.secret_key,
        user_id=user.id,
        ttl_seconds=settings.access_token_ttl_minutes * 60,
    )
    return AuthResponse(id=user.id, name=user.name, email=user.email, token=token)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    req: RegisterRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    name = (req.name or "").strip()
    email = (req.email or "").strip().lower()
    if not name or not email or not req.password:
        raise HTTPException(status_code=400, detail="Please provide name, email and password")
    if len(req.password) < _MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {_MIN_PASSWORD_LENGTH} characters",
        )
    if session.exec(select(User).where(User.email == email)).first() is not None:
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(name=name, email=email, password_hash=hash_password(req.password))
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Registered user %s", user.id)
    return _issue(user, settings)


@router.post("/login", response_model=AuthResponse)
def login(
    req: LoginRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    email = (req.email or "").strip().lower()
    if not email or not req.password:
        raise HTTPException(status_code=400, detail="Please provide email and password")

    user = session.exec(select(User).where(User.email == email)).first()
    if user is None or not verify_password(req.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _issue(user, settings)


@router.get("/me", response_model=UserSummary)
def me(user: User = Depends(get_current_user)) -> UserSummary:
    return UserSummary.from_user(user)
