"""Request and response schemas for access endpoints."""

from pydantic import BaseModel, Field

from driveflow.core.access.types import (
    Decision,
    PermissionAction,
    PermissionCheck,
)


class PermissionCheckRequest(BaseModel):
    """Bulk permission check for the calling principal.

    Attributes:
        organization_id: Organization to act within; must match the token's
        checks: Actions and resources to evaluate
    """

    organization_id: str | None = None
    checks: list[PermissionCheck] = Field(min_length=1, max_length=50)


class PermissionCheckResult(BaseModel):
    """One check together with its decision."""

    check: PermissionCheck
    decision: Decision


class PermissionCheckResponse(BaseModel):
    """Results of a bulk permission check, in request order."""

    allowed: bool
    results: list[PermissionCheckResult]


class RolePermissionsResponse(BaseModel):
    """Static permissions of the calling principal's role."""

    role: str
    scoped: bool
    actions: list[PermissionAction]
