"""Planboard FastAPI Application.

Entry point for the backend server. ``create_app`` builds the engine, the LLM
layer and the planning assistant explicitly and hangs them on ``app.state``;
routers reach them through dependencies in ``app.api.deps``.
"""

from __future__ import annotations

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any

from app.agents.planning_assistant import PlanningAssistant
from app.api.health import VERSION
from app.api.health import router as health_router
from app.api.v1.ai import router as ai_router
from app.api.v1.auth import router as auth_router
from app.api.v1.projects import router as projects_router
from app.api.v1.tasks import router as tasks_router
from app.config import Settings, settings as default_settings
from app.db.database import create_db_and_tables, create_db_engine
from app.middleware.auth import BearerAuthMiddleware
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _build_llm(s: Settings) -> Any | None:
    """Real LLM layer when a key is configured, else None (assistant disabled)."""
    if not s.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY not set. AI features will be disabled.")
        return None
    from app.llm.layer import LLMLayer

    return LLMLayer(s)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    create_db_and_tables(app.state.engine)
    logger.info(
        "Planboard started (db=%s, ai=%s)",
        app.state.engine.dialect.name,
        "enabled" if app.state.assistant.is_configured else "disabled",
    )

    yield

    llm = app.state.assistant.llm
    if llm is not None:
        await llm.close()
    app.state.engine.dispose()


def _register_exception_handlers(app: FastAPI, s: Settings) -> None:
    """Render every error as {"message": ...}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Route not found"
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid {field}: {first.get('msg', 'validation error')}" if field else "Invalid request body"
        return JSONResponse(
            status_code=400,
            content={"message": message, "errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in errors]},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        content: dict[str, Any] = {"message": "Internal Server Error"}
        if s.is_development:
            content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content=content)


def create_app(
    settings: Settings | None = None,
    llm: Any | None = None,
    engine: Engine | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use (defaults to the env-loaded module settings).
        llm: LLM layer override (tests pass a MockLLMLayer). When omitted, a
            real LLMLayer is built if ANTHROPIC_API_KEY is set.
        engine: Engine override; built from settings.database_url otherwise.
    """
    s = settings or default_settings

    app = FastAPI(
        title="Planboard",
        description="Multi-user project and task tracker with a kanban board and AI planning assistant",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = s
    app.state.engine = engine or create_db_engine(s.database_url)
    app.state.assistant = PlanningAssistant(llm if llm is not None else _build_llm(s), s)

    # Middleware (order matters: last added = outermost)
    app.add_middleware(BearerAuthMiddleware, secret_key=s.secret_key)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in s.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    _register_exception_handlers(app, s)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(projects_router)
    app.include_router(tasks_router)
    app.include_router(ai_router)

    @app.get("/")
    async def root():
        return {"name": "Planboard", "version": VERSION, "status": "running"}

    return app


app = create_app()
