"""
API key authentication middleware.

Validates ``Authorization: Bearer <key>`` headers on ``/api/`` routes when
``api_key`` is configured. ``create_app()`` passes its own ``Settings``;
without one the cached ``get_settings()`` instance is used. Health, docs,
media, and WebSocket endpoints are never authenticated.
"""

from datetime import UTC, datetime

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from vibetune.core.config import Settings, get_settings


def _unauthorized() -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={
            "error": "Invalid API key",
            "detail": "Invalid API key",
            "code": "AUTH_REQUIRED",
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


class APIKeyAuthMiddleware(BaseHTTPMiddleware):
    """Enforce Bearer token auth on /api/ routes when api_key is set."""

    _SKIP_PREFIXES = ("/health", "/docs", "/openapi.json", "/redoc", "/ws/", "/media/")

    def __init__(self, app: ASGIApp, settings: Settings | None = None) -> None:
        super().__init__(app)
        self._settings = settings

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        settings = self._settings if self._settings is not None else get_settings()

        # If no API key configured, allow all requests through
        if not settings.api_key:
            return await call_next(request)

        path = request.url.path
        if not path.startswith("/api/") or path.startswith(self._SKIP_PREFIXES):
            return await call_next(request)

        # CORS preflight carries no credentials
        if request.method == "OPTIONS":
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        if not auth_header.startswith("Bearer "):
            return _unauthorized()

        token = auth_header[len("Bearer ") :]
        if token != settings.api_key:
            return _unauthorized()

        return await call_next(request)
