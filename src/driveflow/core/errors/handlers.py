"""RFC 7807 Problem Details exception handlers.

Authorization failures reach clients through these handlers: the
``detail`` member carries the policy evaluator's reason string verbatim
so API consumers and tests can assert on exact messages.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from driveflow.config import settings
from driveflow.core.errors.exceptions import (
    AppException,
    OwnershipLookupError,
    UnauthorizedError,
)


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

OWNERSHIP_RETRY_AFTER_SECONDS = 1


class FieldError(BaseModel):
    """Represents a single field validation error."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short human-readable summary
        status: HTTP status code
        detail: Human-readable explanation; the denial reason for 403s
        instance: Request path the problem occurred on
        errors: Field-level errors (validation failures only)
        trace_id: Request trace ID for debugging
    """

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None

    model_config = {"extra": "allow"}


def _problem(
    request: Request,
    status_code: int,
    error_code: str,
    detail: str,
    *,
    title: str | None = None,
    errors: list[FieldError] | None = None,
    extra: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=title or error_code.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        instance=request.url.path,
        errors=errors,
        trace_id=getattr(request.state, "trace_id", None),
    ).model_dump(exclude_none=True)

    # Exception details never override the standard members
    for key, value in (extra or {}).items():
        content.setdefault(key, value)

    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _response_headers(exc: AppException) -> dict[str, str] | None:
    if isinstance(exc, UnauthorizedError):
        return {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, OwnershipLookupError):
        return {"Retry-After": str(OWNERSHIP_RETRY_AFTER_SECONDS)}
    return None


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application-specific exceptions.

    4xx errors are logged as warnings; 5xx errors (ownership lookup
    failures, invalid roles) are logged as errors so they can be alerted on.
    """
    log_method = logger.error if exc.status_code >= 500 else logger.warning
    log_method(
        "app_exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
    )

    return _problem(
        request,
        exc.status_code,
        exc.error_code,
        exc.message,
        extra=exc.details,
        headers=_response_headers(exc),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request validation errors into a 422 problem with field errors."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in error.get("loc", ()) if part != "body")
            or "unknown",
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        error_count=len(errors),
    )

    return _problem(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        title="Validation Error",
        errors=errors,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing their details."""
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
    )

    return _problem(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
        title="Internal Server Error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)
