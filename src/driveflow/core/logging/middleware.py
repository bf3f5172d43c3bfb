"""Request logging middleware.

One ``request_started`` and one ``request_completed`` event per request,
carrying the caller identity bound by ``PrincipalContextMiddleware`` and,
for routes behind ``require_access``, whether the response was narrowed to
a scoped set of students.
"""

import time
from typing import Any

import structlog
from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger()

DEFAULT_EXCLUDED_PATHS = ("/health/", "/docs", "/redoc", "/openapi.json")


def get_client_ip(request: Request) -> str | None:
    """Extract the client IP, preferring proxy headers.

    The first ``X-Forwarded-For`` entry is the original client.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (
        request.client.host if request.client else None
    )


def _identity(request: Request) -> dict[str, Any]:
    state = request.state
    fields = {
        "request_id": getattr(state, "request_id", None),
        "user_id": getattr(state, "user_id", None),
        "organization_id": getattr(state, "organization_id", None),
    }
    return {key: str(value) for key, value in fields.items() if value}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing and caller identity.

    Completion is logged at warning level for 4xx and error level for 5xx,
    so authorization denials (401/403) and ownership lookup outages (503)
    stand out without extra instrumentation.
    """

    def __init__(
        self,
        app: Any,
        exclude_paths: tuple[str, ...] = DEFAULT_EXCLUDED_PATHS,
    ) -> None:
        super().__init__(app)
        self.exclude_paths = exclude_paths

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if path.startswith(self.exclude_paths):
            return await call_next(request)

        started = time.perf_counter()
        base: dict[str, Any] = {"method": request.method, "path": path}

        logger.info(
            "request_started",
            **base,
            client_ip=get_client_ip(request),
            **_identity(request),
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "request_failed",
                **base,
                duration_ms=_elapsed_ms(started),
                error=str(exc),
            )
            raise

        completion: dict[str, Any] = {
            **base,
            "status_code": response.status_code,
            "duration_ms": _elapsed_ms(started),
            **_identity(request),
        }
        scoped_ids = getattr(request.state, "scoped_resource_ids", None)
        if scoped_ids is not None:
            completion["scoped_students"] = len(scoped_ids)

        if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("request_completed", **completion)
        elif response.status_code >= status.HTTP_400_BAD_REQUEST:
            logger.warning("request_completed", **completion)
        else:
            logger.info("request_completed", **completion)

        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
