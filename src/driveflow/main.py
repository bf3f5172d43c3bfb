"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from driveflow.api import api_router
from driveflow.config import Settings, settings
from driveflow.core.audit import (
    AuditSink,
    DatabaseAuditWriter,
    LoggingAuditWriter,
    QueuedAuditSink,
)
from driveflow.core.auth import PrincipalContextMiddleware, RequestIdMiddleware
from driveflow.core.database import async_engine, async_session_factory
from driveflow.core.errors import register_exception_handlers
from driveflow.core.logging import RequestLoggingMiddleware, configure_logging


configure_logging(settings)

logger = structlog.get_logger()


def build_audit_sink(config: Settings) -> QueuedAuditSink:
    """Create the queued audit sink for the configured backend."""
    if config.audit_backend == "database":
        writer = DatabaseAuditWriter(async_session_factory)
    else:
        writer = LoggingAuditWriter()
    return QueuedAuditSink(writer, maxsize=config.audit_queue_size)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Starts the audit drain task on startup and flushes it on shutdown.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        audit_backend=settings.audit_backend,
    )

    sink = app.state.audit_sink
    if isinstance(sink, QueuedAuditSink):
        sink.start()
        logger.info("audit_sink_started")

    yield

    logger.info("application_shutdown")

    if isinstance(sink, QueuedAuditSink):
        await sink.stop()
        logger.info("audit_sink_stopped", dropped=sink.dropped)

    await async_engine.dispose()
    logger.info("database_engine_disposed")


def create_app(audit_sink: AuditSink | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        audit_sink: Sink for authorization audit events; defaults to a
            queued sink for the configured backend

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Access control for the DriveFlow driving school platform",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    app.state.audit_sink = audit_sink or build_audit_sink(settings)

    # Middleware added last runs first
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(PrincipalContextMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)

    return app
