"""Access-check endpoints."""

from fastapi import APIRouter, Request

from driveflow.api.dependencies import Evaluator
from driveflow.core.access.guard import audit_context
from driveflow.core.access.types import OrgRole, PermissionAction
from driveflow.core.auth.dependencies import CurrentPrincipal
from driveflow.core.errors import InvalidRoleError
from driveflow.modules.memberships.schemas import (
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionCheckResult,
    RolePermissionsResponse,
)


router = APIRouter(prefix="/access", tags=["access"])


@router.post(
    "/check",
    response_model=PermissionCheckResponse,
    summary="Evaluate permission checks",
    description=(
        "Evaluates each check for the authenticated principal. Denials are "
        "reported per check and do not fail the request."
    ),
)
async def check_permissions(
    payload: PermissionCheckRequest,
    request: Request,
    principal: CurrentPrincipal,
    evaluator: Evaluator,
) -> PermissionCheckResponse:
    decisions = await evaluator.evaluate_many(
        principal,
        payload.checks,
        payload.organization_id,
        context=audit_context(request),
    )
    return PermissionCheckResponse(
        allowed=all(d.allowed for d in decisions),
        results=[
            PermissionCheckResult(check=check, decision=decision)
            for check, decision in zip(payload.checks, decisions, strict=True)
        ],
    )


@router.get(
    "/permissions",
    response_model=RolePermissionsResponse,
    summary="List role permissions",
)
async def list_role_permissions(
    principal: CurrentPrincipal,
    evaluator: Evaluator,
) -> RolePermissionsResponse:
    try:
        role = OrgRole(principal.role)
    except ValueError:
        raise InvalidRoleError(principal.role) from None

    allowed = evaluator.matrix.allowed_actions(role)
    return RolePermissionsResponse(
        role=role.value,
        scoped=role.is_scoped,
        actions=[action for action in PermissionAction if action in allowed],
    )
