"""Database layer - session management, base models, and mixins."""

from driveflow.core.database.base import (
    Base,
    OrganizationMixin,
    TimestampMixin,
    UUIDMixin,
)
from driveflow.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "OrganizationMixin",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "get_db",
]
