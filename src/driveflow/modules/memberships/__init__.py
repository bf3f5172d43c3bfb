"""Memberships module - organization membership and ownership lookups."""

from driveflow.modules.memberships.routes import router


__module_info__ = {
    "name": "memberships",
    "version": "1.0.0",
    "description": "Organization memberships, assignments and access checks",
    "dependencies": [],
}

__all__ = ["router"]
