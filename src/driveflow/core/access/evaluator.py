"""Policy evaluation: role gate plus scoped ownership.

Evaluation order is fixed and determines which reason is reported when
several conditions fail:

1. Role gate against the permission matrix (resource is not consulted)
2. Owner and admin are allowed immediately, with no ownership lookup
3. Instructor and student require an organization context
4. Ownership lookup (not found -> denial, failure -> OwnershipLookupError)
5. Instructors may only touch student-related data of assigned students
6. Students may only touch their own or their children's resources

Requirement checks and bulk checks may carry the request's organization;
when it differs from the token's, the check is denied before step 1.

Policy denials come back as ``Decision(allowed=False)`` and are recorded
through the audit sink. Missing principals, invalid roles, and provider
failures are raised instead.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import structlog

from driveflow.core.access.matrix import PermissionMatrix, default_matrix
from driveflow.core.access.providers import OwnershipProvider
from driveflow.core.access.requirements import AccessRequirement
from driveflow.core.access.types import (
    Decision,
    DenialCode,
    OrgRole,
    OwnershipContext,
    PermissionAction,
    PermissionCheck,
    Principal,
    ResourceDescriptor,
)
from driveflow.core.audit.sinks import AUTHORIZATION_DENIED, AuditEvent, AuditSink
from driveflow.core.errors import (
    InvalidRoleError,
    MissingOrganizationContextError,
    OwnershipLookupError,
    PolicyDeniedError,
    UnauthenticatedError,
)


logger = structlog.get_logger()


def role_not_permitted(role: OrgRole, action: PermissionAction | str) -> str:
    return f"Role '{role}' does not have permission for action '{action}'"


def role_required(required: Sequence[OrgRole], role: OrgRole) -> str:
    return f"Required role: {' or '.join(required)}, user has: {role}"


ORGANIZATION_CONTEXT_REQUIRED = "Organization context is required for scoped permissions"
ORGANIZATION_MISMATCH = "User token organization does not match request organization"
STUDENT_NOT_OWNER = (
    "Students can only access their own resources or their children's resources"
)


def membership_not_found(principal_id: str, organization_id: str) -> str:
    return f"User '{principal_id}' not found in organization '{organization_id}'"


def instructor_not_assigned(principal_id: str, owner_id: str) -> str:
    return f"Instructor '{principal_id}' is not assigned to student '{owner_id}'"


def _organization_mismatch(principal: Principal, organization_id: str | None) -> bool:
    return (
        organization_id is not None
        and principal.organization_id is not None
        and organization_id != principal.organization_id
    )


def _within_organization(
    principal: Principal, organization_id: str | None
) -> Principal:
    """A principal without an organization acts within the requested one."""
    if principal.organization_id is None and organization_id is not None:
        return principal.model_copy(update={"organization_id": organization_id})
    return principal


class _OwnershipLookup:
    """Fetches a principal's ownership context at most once."""

    def __init__(self, provider: OwnershipProvider, principal_id: str) -> None:
        self.provider = provider
        self.principal_id = principal_id
        self._fetched = False
        self._context: OwnershipContext | None = None

    async def get(self, organization_id: str) -> OwnershipContext | None:
        if self._fetched:
            return self._context

        try:
            self._context = await self.provider.fetch(self.principal_id, organization_id)
        except OwnershipLookupError:
            raise
        except Exception as e:
            logger.error(
                "ownership_lookup_failed",
                user_id=self.principal_id,
                organization_id=organization_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise OwnershipLookupError(
                details={
                    "user_id": self.principal_id,
                    "organization_id": organization_id,
                    "cause": type(e).__name__,
                },
            ) from e

        self._fetched = True
        return self._context


class PolicyEvaluator:
    """Decides whether a principal may perform actions on a resource.

    Stateless between calls; one instance can serve concurrent requests.

    Args:
        ownership_provider: Directory lookup for assignment relationships
        audit_sink: Receives one event per denial; ``None`` disables auditing
        matrix: Role -> action table, the default matrix unless overridden
    """

    def __init__(
        self,
        ownership_provider: OwnershipProvider,
        audit_sink: AuditSink | None = None,
        matrix: PermissionMatrix = default_matrix,
    ) -> None:
        self.ownership_provider = ownership_provider
        self.audit_sink = audit_sink
        self.matrix = matrix

    async def evaluate(
        self,
        principal: Principal | None,
        action: PermissionAction | str,
        resource: ResourceDescriptor,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> Decision:
        """Decide a single action on a single resource.

        Args:
            principal: The authenticated actor, ``None`` if unauthenticated
            action: Action being attempted
            resource: Target of the action
            context: Extra audit metadata (endpoint, request id, ...)

        Raises:
            UnauthenticatedError: If ``principal`` is None
            InvalidRoleError: If the principal's role is not a known role
            OwnershipLookupError: If the ownership provider fails
        """
        principal = self._require_principal(principal)
        role = self._resolve_role(principal)
        lookup = _OwnershipLookup(self.ownership_provider, principal.id)

        decision = await self._decide(principal, role, (action,), (), resource, lookup)
        self._finish(principal, role, (action,), resource, decision, context)
        return decision

    async def authorize(
        self,
        principal: Principal | None,
        requirement: AccessRequirement,
        resource: ResourceDescriptor | None = None,
        *,
        organization_id: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> Decision:
        """Check a route's declared requirement.

        An empty requirement allows without consulting role or resource
        and without auditing. Otherwise a request ``organization_id`` that
        differs from the principal's is denied first, then the role list
        is checked, then every action in declared order, then ownership
        once for the whole action list.

        Raises:
            UnauthenticatedError: If ``principal`` is None
            InvalidRoleError: If the principal's role is not a known role
            OwnershipLookupError: If the ownership provider fails
        """
        principal = self._require_principal(principal)
        if requirement.is_empty:
            return Decision.allow()

        role = self._resolve_role(principal)
        if _organization_mismatch(principal, organization_id):
            denial = Decision.deny(
                ORGANIZATION_MISMATCH, DenialCode.ORGANIZATION_MISMATCH
            )
            self._finish(
                principal,
                role,
                requirement.actions,
                resource,
                denial,
                {**(context or {}), "request_organization_id": organization_id},
            )
            return denial

        principal = _within_organization(principal, organization_id)
        lookup = _OwnershipLookup(self.ownership_provider, principal.id)

        decision = await self._decide(
            principal,
            role,
            requirement.actions,
            requirement.roles,
            resource,
            lookup,
        )
        self._finish(principal, role, requirement.actions, resource, decision, context)
        return decision

    async def evaluate_many(
        self,
        principal: Principal | None,
        checks: Iterable[PermissionCheck],
        organization_id: str | None = None,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> list[Decision]:
        """Decide several checks for one principal.

        The ownership context is fetched at most once for the whole call.
        When ``organization_id`` is given it must match the principal's
        organization; a principal without one acts within it.

        Returns:
            One decision per check, in input order

        Raises:
            UnauthenticatedError: If ``principal`` is None
            InvalidRoleError: If the principal's role is not a known role
            OwnershipLookupError: If the ownership provider fails
        """
        principal = self._require_principal(principal)
        role = self._resolve_role(principal)
        checks = list(checks)

        if _organization_mismatch(principal, organization_id):
            denial = Decision.deny(
                ORGANIZATION_MISMATCH, DenialCode.ORGANIZATION_MISMATCH
            )
            for check in checks:
                self._finish(
                    principal, role, (check.action,), check.to_resource(), denial, context
                )
            return [denial] * len(checks)

        principal = _within_organization(principal, organization_id)
        lookup = _OwnershipLookup(self.ownership_provider, principal.id)
        decisions: list[Decision] = []
        for check in checks:
            resource = check.to_resource()
            decision = await self._decide(
                principal, role, (check.action,), (), resource, lookup
            )
            self._finish(principal, role, (check.action,), resource, decision, context)
            decisions.append(decision)
        return decisions

    def _require_principal(self, principal: Principal | None) -> Principal:
        if principal is None:
            raise UnauthenticatedError()
        return principal

    def _resolve_role(self, principal: Principal) -> OrgRole:
        try:
            return OrgRole(principal.role)
        except ValueError:
            logger.error(
                "invalid_principal_role",
                user_id=principal.id,
                role=principal.role,
            )
            raise InvalidRoleError(principal.role) from None

    async def _decide(
        self,
        principal: Principal,
        role: OrgRole,
        actions: Sequence[PermissionAction | str],
        required_roles: Sequence[OrgRole],
        resource: ResourceDescriptor | None,
        lookup: _OwnershipLookup,
    ) -> Decision:
        if required_roles and role not in required_roles:
            return Decision.deny(
                role_required(required_roles, role), DenialCode.ROLE_REQUIRED
            )

        missing = self.matrix.first_missing(role, actions)
        if missing is not None:
            return Decision.deny(
                role_not_permitted(role, missing), DenialCode.ROLE_NOT_PERMITTED
            )

        # Owner and admin are deliberately never subject to ownership scoping
        if not role.is_scoped:
            return Decision.allow()

        organization_id = principal.organization_id
        if not organization_id:
            return Decision.deny(
                ORGANIZATION_CONTEXT_REQUIRED, DenialCode.ORGANIZATION_CONTEXT_REQUIRED
            )

        ownership = await lookup.get(organization_id)
        if ownership is None:
            return Decision.deny(
                membership_not_found(principal.id, organization_id),
                DenialCode.MEMBERSHIP_NOT_FOUND,
            )

        owner_id = resource.owner_id if resource is not None else None

        if role is OrgRole.INSTRUCTOR:
            return self._instructor_scope(principal, actions, owner_id, ownership)
        return self._student_scope(principal, owner_id, ownership)

    def _instructor_scope(
        self,
        principal: Principal,
        actions: Sequence[PermissionAction | str],
        owner_id: str | None,
        ownership: OwnershipContext,
    ) -> Decision:
        # Actions have passed the matrix gate, so they are known values
        student_related = any(PermissionAction(a).is_student_related for a in actions)
        if not student_related:
            return Decision.allow()

        assigned = ownership.assigned_student_ids
        if owner_id and owner_id not in assigned:
            return Decision.deny(
                instructor_not_assigned(principal.id, owner_id),
                DenialCode.INSTRUCTOR_NOT_ASSIGNED,
            )
        return Decision.allow(scoped_resource_ids=list(assigned))

    def _student_scope(
        self,
        principal: Principal,
        owner_id: str | None,
        ownership: OwnershipContext,
    ) -> Decision:
        children = ownership.child_student_ids
        if owner_id and owner_id != principal.id and owner_id not in children:
            return Decision.deny(STUDENT_NOT_OWNER, DenialCode.STUDENT_NOT_OWNER)
        return Decision.allow(scoped_resource_ids=[principal.id, *children])

    def _finish(
        self,
        principal: Principal,
        role: OrgRole,
        actions: Sequence[PermissionAction | str],
        resource: ResourceDescriptor | None,
        decision: Decision,
        context: Mapping[str, Any] | None,
    ) -> None:
        action_values = [str(a) for a in actions]

        if decision.allowed:
            logger.debug(
                "authorization_granted",
                user_id=principal.id,
                role=role.value,
                actions=action_values,
                scoped=decision.scoped,
            )
            return

        metadata: dict[str, Any] = {
            "error_reason": decision.reason,
            "denial_code": decision.code.value if decision.code else None,
            "action": action_values[0] if action_values else None,
            "actions": action_values,
            "user_role": role.value,
            "resource_type": resource.type.value if resource else None,
            "resource_id": resource.id if resource else None,
            "owner_id": resource.owner_id if resource else None,
        }
        if context:
            metadata.update(context)

        logger.info(
            "authorization_denied",
            user_id=principal.id,
            organization_id=principal.organization_id,
            reason=decision.reason,
            code=metadata["denial_code"],
            actions=action_values,
        )

        if self.audit_sink is None:
            return

        event = AuditEvent(
            event=AUTHORIZATION_DENIED,
            user_id=principal.id,
            organization_id=principal.organization_id,
            metadata=metadata,
        )
        try:
            self.audit_sink.record(event)
        except Exception as e:
            logger.warning(
                "audit_record_failed",
                user_id=principal.id,
                error_type=type(e).__name__,
                error=str(e),
            )


def enforce(decision: Decision) -> Decision:
    """Raise the exception matching a denial; return allowed decisions.

    For service-layer checks that short-circuit instead of returning
    a decision to an HTTP guard.

    Raises:
        MissingOrganizationContextError: If a scoped role had no organization
        PolicyDeniedError: For every other denial
    """
    if decision.allowed:
        return decision

    details = {"reason_code": decision.code.value} if decision.code else {}
    if decision.code is DenialCode.ORGANIZATION_CONTEXT_REQUIRED:
        raise MissingOrganizationContextError(decision.reason, details=details)
    raise PolicyDeniedError(
        decision.reason,
        error_code=decision.code.value if decision.code else None,
        details=details,
    )
