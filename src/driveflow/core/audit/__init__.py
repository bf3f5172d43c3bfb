"""Audit logging for authorization events.

Provides:
- AuditLog model for storing audit entries
- AuditEvent and the AuditSink / AuditWriter contracts
- QueuedAuditSink for fire-and-forget delivery
"""

from driveflow.core.audit.models import AuditLog
from driveflow.core.audit.sinks import (
    AUTHORIZATION_DENIED,
    AuditEvent,
    AuditSink,
    AuditWriter,
    DatabaseAuditWriter,
    LoggingAuditWriter,
    QueuedAuditSink,
)


__all__ = [
    "AUTHORIZATION_DENIED",
    "AuditEvent",
    "AuditLog",
    "AuditSink",
    "AuditWriter",
    "DatabaseAuditWriter",
    "LoggingAuditWriter",
    "QueuedAuditSink",
]
