"""Audit log database model.

Stores audit entries for tracking who attempted what, when. Actor ids are
opaque identifiers issued by the user directory, so they are stored as
strings rather than foreign keys.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from driveflow.core.constants import (
    MAX_AUDIT_EVENT_LENGTH,
    MAX_IDENTIFIER_LENGTH,
    MAX_IPV6_LENGTH,
    MAX_REQUEST_ID_LENGTH,
    MAX_RESOURCE_TYPE_LENGTH,
)
from driveflow.core.database.base import Base, UUIDMixin


class AuditLog(Base, UUIDMixin):
    """Audit log entry.

    Attributes:
        organization_id: The organization the action was attempted in
        actor_id: The principal who attempted the action
        action: Event name (authorization_denied, ...)
        resource_type: Type of resource targeted
        resource_id: ID of the targeted resource (nullable)
        ip_address: Client IP address
        request_id: Correlation ID for request tracing
        metadata: Additional context about the event
        created_at: When the event occurred
    """

    __tablename__ = "audit_logs"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH),
        nullable=False,
        index=True,
    )

    action: Mapped[str] = mapped_column(
        String(MAX_AUDIT_EVENT_LENGTH),
        nullable=False,
        index=True,
    )
    resource_type: Mapped[str] = mapped_column(
        String(MAX_RESOURCE_TYPE_LENGTH),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[str | None] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH),
        nullable=True,
    )

    ip_address: Mapped[str | None] = mapped_column(
        String(MAX_IPV6_LENGTH),
        nullable=True,
    )
    request_id: Mapped[str | None] = mapped_column(
        String(MAX_REQUEST_ID_LENGTH),
        nullable=True,
        index=True,
    )

    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",  # Column name in database
        JSONB,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action}, "
            f"actor_id={self.actor_id}, resource_type={self.resource_type})>"
        )
