"""HTTP API routers and shared dependencies."""

from driveflow.api.router import api_router


__all__ = ["api_router"]
