"""Database setup — SQLModel/SQLAlchemy engine construction.

Design decisions:
- SQLModel: combines Pydantic v2 + SQLAlchemy in one model class
- SQLite by default, WAL mode + foreign keys enabled per engine
- Alembic for migrations: autogenerate from SQLModel table definitions
- The engine is built by the application factory and lives on app.state;
  request handlers get sessions through the get_session dependency
"""

from __future__ import annotations

import os
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine


def prepare_database_url(url: str) -> str:
    """Ensure the data directory of a file-backed SQLite URL exists."""
    if url.startswith("sqlite:///"):
        db_path = url.replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    return url


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    """WAL for concurrent reads; FK enforcement is off by default in SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA busy_timeout=5000")    # 5s wait on lock
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Build an engine for the given URL.

    In-memory SQLite ("sqlite://") gets a StaticPool so every session sees
    the same database.
    """
    url = prepare_database_url(url)
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=echo, **kwargs)
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def create_db_and_tables(engine: Engine) -> None:
    """Create all tables defined by SQLModel metadata."""
    # Import table models so SQLModel metadata registers them
    from app.models.task import Project, ProjectMember, Task  # noqa: F401
    from app.models.user import User  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session(request: Request) -> Iterator[Session]:
    """Dependency for FastAPI endpoints."""
    with Session(request.app.state.engine) as session:
        yield session
