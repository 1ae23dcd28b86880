"""
Global error handling for the FastAPI application.

Catches VibeTuneError subclasses, request validation errors, and unhandled
exceptions, converting them into a consistent JSON envelope::

    {"error": "...", "detail": "...", "code": "...", "timestamp": "..."}
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vibetune.core.exceptions import VibeTuneError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, error: str, detail: str, code: str, timestamp: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def _validation_message(exc: RequestValidationError) -> str:
    """Summarize the first validation error as ``<field>: <message>``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers three handlers in priority order:
    1. ``VibeTuneError`` maps domain errors to their status code.
    2. ``RequestValidationError`` answers 400 for malformed body/params.
    3. ``Exception`` is the catch-all for unexpected server errors (500).

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(VibeTuneError)
    async def vibetune_error_handler(_request: Request, exc: VibeTuneError) -> JSONResponse:
        """Convert domain-specific errors into a JSON error envelope."""
        return _envelope(exc.status_code, exc.detail, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors (malformed body/params)."""
        message = _validation_message(exc)
        return _envelope(400, message, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler; prevents stack traces from leaking to clients."""
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return _envelope(500, "Internal server error", "Internal server error", "INTERNAL_ERROR")
