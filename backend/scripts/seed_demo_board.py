#!/usr/bin/env python3
"""Seed a demo user, project and board into the database.

Usage:
    cd backend
    python -m scripts.seed_demo_board

Login afterwards with demo@planboard.dev / demo-password.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

# Ensure CWD is backend/ so sqlite:///data/planboard.db resolves correctly
os.chdir(BACKEND_DIR)

from app.config import settings  # noqa: E402
from app.db.database import create_db_and_tables, create_db_engine  # noqa: E402
from app.models.task import Project, ProjectMember, Task  # noqa: E402
from app.models.user import User  # noqa: E402
from app.security.passwords import hash_password  # noqa: E402
from sqlmodel import Session, select  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
logger = logging.getLogger("seed_demo_board")

DEMO_EMAIL = "demo@planboard.dev"
DEMO_PASSWORD = "demo-password"

_NOW = datetime.now(timezone.utc)

# ── Board definition ───────────────────────────────────────────────
TASKS: list[dict] = [
    {"title": "Write launch announcement", "status": "todo", "priority": "high", "due": 3},
    {"title": "Collect beta feedback", "status": "todo", "priority": "medium", "due": -2},
    {"title": "Fix onboarding emails", "status": "in-progress", "priority": "urgent", "due": -1},
    {"title": "Design pricing page", "status": "in-progress", "priority": "medium", "due": 7},
    {"title": "Set up analytics", "status": "done", "priority": "low", "due": -5},
]


def seed_board() -> None:
    """Create the demo user and project unless they already exist."""
    engine = create_db_engine(settings.database_url)
    create_db_and_tables(engine)

    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == DEMO_EMAIL)).first()
        if user is not None:
            logger.info("SKIP (already exists): %s [id=%s]", DEMO_EMAIL, user.id)
            return

        user = User(name="Demo User", email=DEMO_EMAIL, password_hash=hash_password(DEMO_PASSWORD))
        session.add(user)
        session.flush()

        project = Project(name="Product Launch", description="Demo board", owner_id=user.id)
        session.add(project)
        session.flush()
        session.add(ProjectMember(project_id=project.id, user_id=user.id))

        positions: dict[str, int] = {}
        for defn in TASKS:
            position = positions.get(defn["status"], 0)
            positions[defn["status"]] = position + 1
            session.add(Task(
                title=defn["title"],
                status=defn["status"],
                priority=defn["priority"],
                due_date=_NOW + timedelta(days=defn["due"]),
                project_id=project.id,
                created_by_id=user.id,
                position=position,
            ))
        session.commit()
        logger.info("CREATED: %s with project %s (%d tasks)", DEMO_EMAIL, project.id, len(TASKS))


if __name__ == "__main__":
    seed_board()
