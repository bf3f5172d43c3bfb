"""Request tracing and principal context middleware.

This module provides middleware for:
- Request tracing with unique IDs
- Binding the caller's identity to the log context
"""

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from driveflow.core.auth.backend import decode_token
from driveflow.core.constants import MAX_REQUEST_ID_LENGTH


if TYPE_CHECKING:
    from starlette.types import ASGIApp


class PrincipalContextMiddleware(BaseHTTPMiddleware):
    """Middleware that exposes the caller's identity for logging.

    Decodes the bearer token (if any) and stores ``user_id`` and
    ``organization_id`` on ``request.state`` and in the structlog context.
    Enforcement happens in route dependencies, never here.
    """

    def __init__(
        self,
        app: "ASGIApp",
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.exclude_paths = exclude_paths or [
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
        ]

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token_data = decode_token(auth_header.split(" ", 1)[1])

            if token_data:
                request.state.user_id = token_data.user_id
                request.state.organization_id = token_data.organization_id
                structlog.contextvars.bind_contextvars(
                    user_id=token_data.user_id,
                    organization_id=token_data.organization_id,
                )

        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a unique request ID to each request.

    A client-supplied ``X-Request-ID`` is reused when it fits the audit log
    column; longer values are replaced with a generated ID.

    The request ID is added to:
    - request.state.request_id
    - Response header X-Request-ID
    - Structlog context
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID")
        if not request_id or len(request_id) > MAX_REQUEST_ID_LENGTH:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.trace_id = request_id  # Alias for error handler

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars(
                "request_id", "organization_id", "user_id"
            )

        response.headers["X-Request-ID"] = request_id
        return response
