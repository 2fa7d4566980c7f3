"""Error handling and exception handlers for cheesepants-py.

Every HTTP error is answered with a structured JSON body carrying the
request's correlation ID. Game socket errors never reach these handlers;
the WebSocket handler answers them with advisory messages instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from litestar import Response
from litestar.status_codes import (
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

if TYPE_CHECKING:
    from litestar import Request
    from litestar.exceptions import HTTPException, ValidationException

    from cheesepants_py.exceptions import GameNotFoundError, StorageError

logger = structlog.get_logger(__name__)

HTTP_ERROR_CODES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
    429: "rate_limited",
    500: "internal_error",
    503: "service_unavailable",
}


@dataclass
class ErrorDetail:
    """Details about a specific error."""

    field: str | None = None
    message: str = ""
    code: str = "error"


@dataclass
class ErrorResponse:
    """Structured error response format."""

    status: str = "error"
    message: str = ""
    code: str = "internal_error"
    correlation_id: str | None = None
    details: list[ErrorDetail] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "code": self.code,
        }
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        if self.details:
            result["details"] = [{"field": d.field, "message": d.message, "code": d.code} for d in self.details]
        return result

    def to_response(self, status_code: int) -> Response[dict[str, Any]]:
        """Wrap in a JSON response."""
        return Response(content=self.to_dict(), status_code=status_code, media_type="application/json")


def get_correlation_id(request: Request) -> str | None:
    """Extract correlation ID from request state or headers."""
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id:
        return correlation_id
    return request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID")


def validation_exception_handler(request: Request, exc: ValidationException) -> Response[dict[str, Any]]:
    """Handle validation errors with per-field details."""
    correlation_id = get_correlation_id(request)

    details: list[ErrorDetail] = []
    for error in exc.extra or []:
        if isinstance(error, dict):
            key = error.get("key") or ".".join(str(p) for p in error.get("loc", [])) or None
            msg = error.get("message", error.get("msg", str(error)))
            details.append(ErrorDetail(field=key, message=msg, code="validation_error"))
        else:
            details.append(ErrorDetail(message=str(error), code="validation_error"))
    if not details:
        details.append(ErrorDetail(message=str(exc.detail), code="validation_error"))

    logger.warning(
        "Validation error",
        correlation_id=correlation_id,
        path=request.url.path,
        method=request.method,
        error_count=len(details),
    )

    return ErrorResponse(
        message="Validation failed",
        code="validation_error",
        correlation_id=correlation_id,
        details=details,
    ).to_response(HTTP_422_UNPROCESSABLE_ENTITY)


def http_exception_handler(request: Request, exc: HTTPException) -> Response[dict[str, Any]]:
    """Handle HTTP exceptions with structured responses."""
    correlation_id = get_correlation_id(request)
    error_code = HTTP_ERROR_CODES.get(exc.status_code, "error")
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    log_method = logger.warning if exc.status_code < 500 else logger.error
    log_method(
        "HTTP exception",
        correlation_id=correlation_id,
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error_code=error_code,
    )

    return ErrorResponse(
        message=message,
        code=error_code,
        correlation_id=correlation_id,
    ).to_response(exc.status_code)


def game_not_found_handler(request: Request, exc: GameNotFoundError) -> Response[dict[str, Any]]:
    """Handle GameNotFoundError exceptions."""
    correlation_id = get_correlation_id(request)

    logger.warning(
        "Game not found",
        correlation_id=correlation_id,
        game_id=exc.game_id,
        path=request.url.path,
    )

    return ErrorResponse(
        message=str(exc),
        code="game_not_found",
        correlation_id=correlation_id,
        details=[ErrorDetail(field="game_id", message=str(exc), code="not_found")],
    ).to_response(HTTP_404_NOT_FOUND)


def storage_error_handler(request: Request, exc: StorageError) -> Response[dict[str, Any]]:
    """Handle StorageError exceptions."""
    correlation_id = get_correlation_id(request)

    logger.error(
        "Storage error",
        correlation_id=correlation_id,
        error=str(exc),
        path=request.url.path,
    )

    return ErrorResponse(
        message="Game storage is temporarily unavailable.",
        code="storage_error",
        correlation_id=correlation_id,
    ).to_response(HTTP_503_SERVICE_UNAVAILABLE)


def generic_exception_handler(request: Request, exc: Exception) -> Response[dict[str, Any]]:
    """Handle unexpected exceptions with a generic error response.

    Logs the full exception but returns a safe message to the client.
    """
    correlation_id = get_correlation_id(request)

    logger.exception(
        "Unhandled exception",
        correlation_id=correlation_id,
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )

    return ErrorResponse(
        message="An unexpected error occurred. Please try again later.",
        code="internal_error",
        correlation_id=correlation_id,
    ).to_response(HTTP_500_INTERNAL_SERVER_ERROR)


def get_exception_handlers() -> dict:
    """Get all exception handlers for the application.

    Returns:
        Dictionary mapping exception types to handler functions.

    Note:
        Uses deferred imports to avoid circular dependencies.
    """
    from litestar.exceptions import HTTPException, ValidationException

    from cheesepants_py.exceptions import GameNotFoundError, StorageError

    return {
        ValidationException: validation_exception_handler,
        HTTPException: http_exception_handler,
        GameNotFoundError: game_not_found_handler,
        StorageError: storage_error_handler,
        Exception: generic_exception_handler,
    }
