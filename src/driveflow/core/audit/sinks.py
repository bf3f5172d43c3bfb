"""Best-effort audit event delivery.

Authorization denials are recorded through an :class:`AuditSink`. The
sink contract is fire-and-forget: ``record`` never blocks the caller and
never raises for delivery problems. :class:`QueuedAuditSink` decouples
the request path from storage with a bounded asyncio queue drained by a
background task into an :class:`AuditWriter`.
"""

import asyncio
import contextlib
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from driveflow.core.audit.models import AuditLog
from driveflow.core.constants import (
    AUDIT_SHUTDOWN_TIMEOUT_SECONDS,
    DEFAULT_AUDIT_QUEUE_SIZE,
)


log = structlog.get_logger()

AUTHORIZATION_DENIED = "authorization_denied"


class AuditEvent(BaseModel):
    """A single audit record.

    Attributes:
        event: Event name, e.g. ``"authorization_denied"``
        user_id: Principal the event is about
        organization_id: Tenant the principal acted within, if known
        metadata: Free-form context (reason, action, resource type, ...)
        occurred_at: When the event happened
    """

    model_config = ConfigDict(frozen=True)

    event: str
    user_id: str
    organization_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


@runtime_checkable
class AuditSink(Protocol):
    """Non-blocking audit event consumer."""

    def record(self, event: AuditEvent) -> None: ...


@runtime_checkable
class AuditWriter(Protocol):
    """Persists audit events; used behind a queue."""

    async def write(self, event: AuditEvent) -> None: ...


class LoggingAuditWriter:
    """Writes audit events to the structured log."""

    async def write(self, event: AuditEvent) -> None:
        log.info(
            "audit_event",
            audit_event=event.event,
            user_id=event.user_id,
            organization_id=event.organization_id,
            occurred_at=event.occurred_at.isoformat(),
            **event.metadata,
        )


def _as_uuid(value: str | None) -> UUID | None:
    if value is None:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


class DatabaseAuditWriter:
    """Persists audit events as :class:`AuditLog` rows.

    Each event is written in its own short session so a failed write never
    leaks into request transactions. Events without a resolvable
    organization are logged and skipped since audit rows are tenant-scoped.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self.session_factory = session_factory

    async def write(self, event: AuditEvent) -> None:
        organization_id = _as_uuid(event.organization_id)
        if organization_id is None:
            log.warning(
                "audit_skipped_no_organization",
                audit_event=event.event,
                user_id=event.user_id,
            )
            return

        entry = AuditLog(
            organization_id=organization_id,
            actor_id=event.user_id,
            action=event.event,
            resource_type=str(event.metadata.get("resource_type") or "auth"),
            resource_id=event.metadata.get("resource_id"),
            request_id=event.metadata.get("request_id"),
            ip_address=event.metadata.get("ip_address"),
            metadata_=event.metadata,
            created_at=event.occurred_at,
        )

        async with self.session_factory() as session:
            session.add(entry)
            await session.commit()


class QueuedAuditSink:
    """Audit sink backed by a bounded in-process queue.

    ``record`` enqueues without waiting; a full queue drops the event. A
    single background task drains the queue into the writer, logging and
    ignoring writer failures.
    """

    def __init__(
        self,
        writer: AuditWriter,
        maxsize: int = DEFAULT_AUDIT_QUEUE_SIZE,
    ) -> None:
        self.writer = writer
        self._queue: asyncio.Queue[AuditEvent] = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task[None] | None = None
        self.dropped = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def record(self, event: AuditEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            log.warning(
                "audit_event_dropped",
                audit_event=event.event,
                user_id=event.user_id,
                dropped_total=self.dropped,
            )

    def start(self) -> None:
        """Start the background drain task on the running loop."""
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._drain())

    async def stop(self, timeout: float = AUDIT_SHUTDOWN_TIMEOUT_SECONDS) -> None:
        """Flush pending events (bounded by ``timeout``) and stop the task."""
        if self._task is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except TimeoutError:
            log.warning("audit_flush_timeout", pending=self.pending)
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def flush(self) -> None:
        """Wait until every queued event has been handed to the writer."""
        await self._queue.join()

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.writer.write(event)
            except Exception as e:
                log.error(
                    "audit_write_failed",
                    audit_event=event.event,
                    user_id=event.user_id,
                    error=str(e),
                )
            finally:
                self._queue.task_done()
