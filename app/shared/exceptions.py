"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def extra_content(self) -> dict[str, object]:
        """Additional fields rendered inside the error envelope."""
        return {}

    def headers(self) -> dict[str, str] | None:
        return None


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class UnauthenticatedException(AppException):
    """Raised when credentials are missing or invalid."""

    status_code = 401
    code = "unauthenticated"

    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class UnauthorizedException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"


class ValidationFailedException(AppException):
    """Raised when submitted data fails field-level validation."""

    status_code = 400
    code = "validation_failed"

    def __init__(
        self,
        field_errors: Mapping[str, str],
        message: str = "Submitted data is invalid",
    ) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors)

    def extra_content(self) -> dict[str, object]:
        return {"fields": self.field_errors}


class RateLimitException(AppException):
    """Raised when a caller exceeds its request budget."""

    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str, *, reset_time: int, retry_after: int) -> None:
        super().__init__(message)
        self.reset_time = reset_time
        self.retry_after = retry_after

    def extra_content(self) -> dict[str, object]:
        return {"reset_time": self.reset_time, "retry_after": self.retry_after}

    def headers(self) -> dict[str, str] | None:
        return {"Retry-After": str(self.retry_after)}


class IllegalTransitionException(AppException):
    """Raised when a status change is not reachable from the current state."""

    status_code = 409
    code = "illegal_transition"

    def __init__(self, message: str, *, current: str, target: str) -> None:
        super().__init__(message)
        self.current = current
        self.target = target

    def extra_content(self) -> dict[str, object]:
        return {"current": self.current, "target": self.target}


class TokenInvalidException(AppException):
    """Raised for unknown, expired and already consumed tokens alike."""

    status_code = 404
    code = "token_invalid"

    def __init__(self, message: str = "Upload token is invalid or has already been used") -> None:
        super().__init__(message)


class StoreUnavailableException(AppException):
    """Raised when the ephemeral store cannot be reached in time."""

    status_code = 503
    code = "store_unavailable"


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    if isinstance(exc, StoreUnavailableException):
        logger.error("Ephemeral store unavailable: %s", exc.message)
    elif isinstance(exc, IllegalTransitionException):
        logger.warning("Illegal transition rejected: %s", exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message, **exc.extra_content()}},
        headers=exc.headers(),
    )


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_exception_handler(
    _: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Render request schema errors in the same shape as pipeline errors."""
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        location = [
            str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")
        ]
        field_path = ".".join(location) or "general"
        field_errors.setdefault(field_path, str(error.get("msg", "Invalid value")))
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": ValidationFailedException.code,
                "message": "Submitted data is invalid",
                "fields": field_errors,
            },
        },
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
