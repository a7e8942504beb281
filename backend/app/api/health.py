"""Health check endpoint — database and AI assistant configuration."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text

router = APIRouter()

VERSION = "1.0.0"


class HealthStatus(BaseModel):
    status: str  # "OK" | "degraded"
    message: str
    version: str
    checks: dict[str, dict]
    timestamp: datetime


@router.get("/api/health", response_model=HealthStatus)
def health_check(request: Request) -> HealthStatus:
    """Unauthenticated liveness check with per-dependency detail."""
    checks: dict[str, dict] = {}
    healthy = True

    # 1. Database
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        checks["database"] = {"status": "ok", "detail": request.app.state.engine.dialect.name}
    except Exception as e:
        checks["database"] = {"status": "error", "detail": str(e)[:200]}
        healthy = False

    # 2. AI assistant (informational — never degrades health)
    if request.app.state.assistant.is_configured:
        checks["ai_assistant"] = {"status": "ok", "detail": "API key configured"}
    else:
        checks["ai_assistant"] = {"status": "disabled", "detail": "ANTHROPIC_API_KEY not set"}

    return HealthStatus(
        status="OK" if healthy else "degraded",
        message="Server is running" if healthy else "Server is running with errors",
        version=VERSION,
        checks=checks,
        timestamp=datetime.now(timezone.utc),
    )
