"""FastAPI enforcement of access requirements.

Routes declare an :class:`AccessRequirement` and, when ownership matters,
a resolver that turns the request into one :class:`ResourceDescriptor`.
Routes addressed to an organization also pass an organization resolver so
the token cannot act on another tenant. The evaluator never sees request
shapes.

Usage:
    @router.get("/orgs/{org_id}/students/{student_id}/lessons")
    async def list_lessons(
        decision: Annotated[
            Decision,
            require_access(
                SCOPED_LESSON_ACCESS,
                owner_from_path(ResourceType.LESSON, "student_id"),
                organization=org_from_path("org_id"),
            ),
        ],
    ):
        # decision.scoped_resource_ids narrows the query for scoped roles
        ...
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from fastapi import Depends, Request

from driveflow.core.access.evaluator import PolicyEvaluator, enforce
from driveflow.core.access.requirements import AccessRequirement
from driveflow.core.access.types import Decision, ResourceDescriptor, ResourceType
from driveflow.core.auth.dependencies import OptionalPrincipal
from driveflow.core.errors import MalformedRequestBodyError
from driveflow.core.logging.middleware import get_client_ip


ResourceResolver = Callable[
    [Request], ResourceDescriptor | None | Awaitable[ResourceDescriptor | None]
]
OrganizationResolver = Callable[[Request], str | None | Awaitable[str | None]]

ORGANIZATION_HEADER = "X-Org-ID"


def owner_from_path(
    resource_type: ResourceType,
    owner_param: str = "student_id",
    id_param: str | None = None,
) -> ResourceResolver:
    """Resolve the owning student (and optionally resource id) from path params."""

    def resolve(request: Request) -> ResourceDescriptor:
        params = request.path_params
        return ResourceDescriptor(
            type=resource_type,
            id=params.get(id_param) if id_param else None,
            owner_id=params.get(owner_param),
        )

    return resolve


def owner_from_query(
    resource_type: ResourceType,
    owner_param: str = "student_id",
) -> ResourceResolver:
    """Resolve the owning student from a query parameter."""

    def resolve(request: Request) -> ResourceDescriptor:
        return ResourceDescriptor(
            type=resource_type,
            owner_id=request.query_params.get(owner_param),
        )

    return resolve


async def _json_body(request: Request) -> Any:
    if not await request.body():
        return {}
    try:
        return await request.json()
    except ValueError:
        raise MalformedRequestBodyError() from None


def owner_from_body(
    resource_type: ResourceType,
    owner_field: str = "student_id",
) -> ResourceResolver:
    """Resolve the owning student from a JSON request body field.

    A body that is not valid JSON is rejected with a 400 before any
    policy is evaluated.
    """

    async def resolve(request: Request) -> ResourceDescriptor:
        body = await _json_body(request)
        owner_id = body.get(owner_field) if isinstance(body, dict) else None
        return ResourceDescriptor(
            type=resource_type,
            owner_id=str(owner_id) if owner_id is not None else None,
        )

    return resolve


def org_from_path(param: str = "org_id") -> OrganizationResolver:
    """Read the request's organization from a path parameter."""

    def resolve(request: Request) -> str | None:
        return request.path_params.get(param)

    return resolve


def org_from_query(param: str = "org_id") -> OrganizationResolver:
    def resolve(request: Request) -> str | None:
        return request.query_params.get(param)

    return resolve


def org_from_header(header: str = ORGANIZATION_HEADER) -> OrganizationResolver:
    def resolve(request: Request) -> str | None:
        return request.headers.get(header)

    return resolve


def org_from_body(field: str = "organization_id") -> OrganizationResolver:
    async def resolve(request: Request) -> str | None:
        body = await _json_body(request)
        value = body.get(field) if isinstance(body, dict) else None
        return str(value) if value is not None else None

    return resolve


async def _call_resolver(
    resolver: Callable[[Request], Any] | None, request: Request
) -> Any:
    if resolver is None:
        return None
    result = resolver(request)
    if inspect.isawaitable(result):
        return await result
    return result


def audit_context(request: Request) -> dict[str, Any]:
    """Request metadata attached to audit events for denials."""
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    return {
        "endpoint": f"{request.method} {path}",
        "request_id": getattr(request.state, "request_id", None),
        "ip_address": get_client_ip(request),
        "user_agent": request.headers.get("user-agent"),
    }


def require_access(
    requirement: AccessRequirement,
    resolver: ResourceResolver | None = None,
    organization: OrganizationResolver | None = None,
) -> Any:
    """Build a dependency enforcing ``requirement`` on a route.

    The dependency returns the allowed :class:`Decision` and stores its
    ``scoped_resource_ids`` on ``request.state`` for list endpoints.

    Args:
        requirement: Roles and actions the route declares
        resolver: Turns the request into the target resource
        organization: Reads the organization the request acts on; a value
            differing from the token's organization is denied

    Raises (from the dependency):
        MalformedRequestBodyError: A body resolver got invalid JSON (400)
        UnauthenticatedError: No bearer token (401)
        PolicyDeniedError: Role, ownership or organization denial (403)
        MissingOrganizationContextError: Scoped role without organization (403)
        OwnershipLookupError: Ownership provider failure (503)
        InvalidRoleError: Token carries an unknown role (500)
    """
    from driveflow.api.dependencies import get_policy_evaluator  # noqa: PLC0415

    async def dependency(
        request: Request,
        principal: OptionalPrincipal,
        evaluator: Annotated[PolicyEvaluator, Depends(get_policy_evaluator)],
    ) -> Decision:
        resource = None
        organization_id = None
        if principal is not None and not requirement.is_empty:
            resource = await _call_resolver(resolver, request)
            organization_id = await _call_resolver(organization, request)

        decision = await evaluator.authorize(
            principal,
            requirement,
            resource,
            organization_id=organization_id,
            context=audit_context(request),
        )
        enforce(decision)

        request.state.scoped_resource_ids = (
            decision.scoped_resource_ids if decision.scoped else None
        )
        return decision

    return Depends(dependency)
