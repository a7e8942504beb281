"""Bearer token authentication middleware.

Resolves ``Authorization: Bearer <token>`` to a caller user id and stores it
on ``request.state.user_id``. Handlers load the user through the
``get_current_user`` dependency.

Only the protected API prefixes require a token, so unknown paths still fall
through to the 404 handler.
"""

from __future__ import annotations

import logging

from app.security.access_token import verify_access_token
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

_PROTECTED_PREFIXES = (
    "/api/projects",
    "/api/tasks",
    "/api/ai",
    "/api/auth/me",
)


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Validates the Bearer token for protected API routes."""

    def __init__(self, app: ASGIApp, secret_key: str) -> None:
        super().__init__(app)
        self.secret_key = secret_key

    async def dispatch(self, request: Request, call_next):
        request.state.user_id = None

        if request.method == "OPTIONS" or not self._is_protected(request.url.path):
            return await call_next(request)

        token = self._extract_token(request)
        if token is None:
            return JSONResponse(
                status_code=401,
                content={"message": "Not authorized, no token"},
            )

        user_id = verify_access_token(token=token, secret_key=self.secret_key)
        if user_id is None:
            logger.warning(
                "Rejected token from %s on %s",
                request.client.host if request.client else "unknown",
                request.url.path,
            )
            return JSONResponse(
                status_code=401,
                content={"message": "Not authorized, token failed"},
            )

        request.state.user_id = user_id
        return await call_next(request)

    @staticmethod
    def _is_protected(path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in _PROTECTED_PREFIXES)

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()
            return token or None
        return None
