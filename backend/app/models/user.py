"""User model."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel
from sqlmodel import Field as SQLField
from sqlmodel import SQLModel


class User(SQLModel, table=True):
    """An account that can own and join projects."""

    __tablename__ = "app_user"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    email: str = SQLField(index=True, unique=True)  # stored lower-cased
    password_hash: str
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))


class UserSummary(BaseModel):
    """Public view of a user, embedded in project and task responses."""

    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(id=user.id, name=user.name, email=user.email)
