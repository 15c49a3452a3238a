from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto a JSON error envelope."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class Unauthenticated(AppError):
    status_code = 401
    public_message = "Unauthorized"


class ValidationError(AppError):
    status_code = 400
    public_message = "Invalid request"


class Forbidden(AppError):
    status_code = 403
    public_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    public_message = "Not found"


class Conflict(AppError):
    status_code = 409
    public_message = "Conflict"


class UpstreamError(AppError):
    """An external service call failed or returned something unusable."""

    status_code = 500
    public_message = "Upstream service error"


class Internal(AppError):
    status_code = 500


def error_envelope(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        # Upstream/internal details stay in the logs, never in the response
        if exc.status_code >= 500:
            logger.error(
                "Request failed: %s",
                exc.message,
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "status_code": exc.status_code,
                },
            )
            return error_envelope(exc.public_message, exc.status_code)
        return error_envelope(exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_envelope(_format_validation_error(exc), 400)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error: %s",
            exc,
            extra={"request_id": getattr(request.state, "request_id", None)},
        )
        return error_envelope("Internal server error", 500)
