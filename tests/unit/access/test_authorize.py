"""Unit tests for requirement checks and bulk evaluation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from driveflow.core.access import (
    Decision,
    DenialCode,
    OwnershipContext,
    PermissionCheck,
    PolicyEvaluator,
    Principal,
    ResourceDescriptor,
    ResourceType,
    enforce,
)
from driveflow.core.access.requirements import (
    ADMIN_OR_OWNER,
    LESSON_MANAGEMENT,
    NO_RESTRICTION,
    SCOPED_LESSON_ACCESS,
    STAFF_ONLY,
    permissions,
)
from driveflow.core.errors import (
    MissingOrganizationContextError,
    PolicyDeniedError,
    UnauthenticatedError,
)


pytestmark = pytest.mark.unit

ORG_ID = "22222222-2222-2222-2222-222222222222"
OTHER_ORG_ID = "33333333-3333-3333-3333-333333333333"


class TestAuthorize:
    """Tests for PolicyEvaluator.authorize."""

    async def test_empty_requirement_allows_any_role(
        self,
        evaluator: PolicyEvaluator,
        ownership_provider: AsyncMock,
        audit_sink: MagicMock,
    ):
        """No declared roles or actions means no restriction, even for bad roles."""
        principal = Principal(id="u-1", role="not-a-role")

        decision = await evaluator.authorize(principal, NO_RESTRICTION)

        assert decision.allowed is True
        ownership_provider.fetch.assert_not_awaited()
        audit_sink.record.assert_not_called()

    async def test_empty_requirement_still_needs_principal(
        self, evaluator: PolicyEvaluator
    ):
        with pytest.raises(UnauthenticatedError):
            await evaluator.authorize(None, NO_RESTRICTION)

    async def test_required_role_checked_before_actions(
        self, evaluator: PolicyEvaluator
    ):
        principal = Principal(id="stu-1", role="student", organization_id=ORG_ID)

        decision = await evaluator.authorize(
            principal, ADMIN_OR_OWNER + LESSON_MANAGEMENT
        )

        assert decision.code is DenialCode.ROLE_REQUIRED
        assert decision.reason == "Required role: owner or admin, user has: student"

    async def test_first_missing_action_reported(self, evaluator: PolicyEvaluator):
        """Actions are checked in declared order."""
        principal = Principal(id="stu-1", role="student", organization_id=ORG_ID)

        decision = await evaluator.authorize(principal, LESSON_MANAGEMENT)

        assert decision.reason == (
            "Role 'student' does not have permission for action 'lessons:write'"
        )

    async def test_ownership_checked_once_for_all_actions(
        self,
        evaluator: PolicyEvaluator,
        ownership_provider: AsyncMock,
    ):
        ownership_provider.fetch.return_value = OwnershipContext(
            role="instructor", assigned_student_ids=("stu-1",)
        )
        principal = Principal(id="inst-1", role="instructor", organization_id=ORG_ID)

        decision = await evaluator.authorize(
            principal,
            STAFF_ONLY + SCOPED_LESSON_ACCESS,
            ResourceDescriptor(type=ResourceType.LESSON, owner_id="stu-1"),
        )

        assert decision.allowed is True
        assert decision.scoped_resource_ids == ["stu-1"]
        ownership_provider.fetch.assert_awaited_once()

    async def test_request_organization_mismatch_denied_first(
        self,
        evaluator: PolicyEvaluator,
        ownership_provider: AsyncMock,
        audit_sink: MagicMock,
    ):
        """An organization mismatch is reported before any role denial."""
        principal = Principal(id="stu-1", role="student", organization_id=ORG_ID)

        decision = await evaluator.authorize(
            principal,
            ADMIN_OR_OWNER,
            organization_id=OTHER_ORG_ID,
            context={"endpoint": "GET /orgs/{org_id}/settings"},
        )

        assert decision.code is DenialCode.ORGANIZATION_MISMATCH
        assert decision.reason == (
            "User token organization does not match request organization"
        )
        ownership_provider.fetch.assert_not_awaited()
        metadata = audit_sink.record.call_args.args[0].metadata
        assert metadata["request_organization_id"] == OTHER_ORG_ID
        assert metadata["endpoint"] == "GET /orgs/{org_id}/settings"

    async def test_matching_request_organization_allowed(
        self, evaluator: PolicyEvaluator
    ):
        principal = Principal(id="own-1", role="owner", organization_id=ORG_ID)

        decision = await evaluator.authorize(
            principal, ADMIN_OR_OWNER, organization_id=ORG_ID
        )

        assert decision.allowed is True

    async def test_principal_without_org_adopts_request_org(
        self,
        evaluator: PolicyEvaluator,
        ownership_provider: AsyncMock,
    ):
        ownership_provider.fetch.return_value = OwnershipContext(
            role="instructor", assigned_student_ids=("stu-1",)
        )
        principal = Principal(id="inst-1", role="instructor")

        decision = await evaluator.authorize(
            principal, SCOPED_LESSON_ACCESS, organization_id=ORG_ID
        )

        assert decision.allowed is True
        ownership_provider.fetch.assert_awaited_once_with("inst-1", ORG_ID)

    async def test_empty_requirement_ignores_request_organization(
        self, evaluator: PolicyEvaluator
    ):
        principal = Principal(id="adm-1", role="admin", organization_id=ORG_ID)

        decision = await evaluator.authorize(
            principal, NO_RESTRICTION, organization_id=OTHER_ORG_ID
        )

        assert decision.allowed is True


class TestEvaluateMany:
    """Tests for PolicyEvaluator.evaluate_many."""

    async def test_decisions_in_input_order_with_single_lookup(
        self,
        evaluator: PolicyEvaluator,
        ownership_provider: AsyncMock,
    ):
        ownership_provider.fetch.return_value = OwnershipContext(
            role="student", child_student_ids=("kid-1",)
        )
        principal = Principal(id="stu-1", role="student", organization_id=ORG_ID)
        checks = [
            PermissionCheck(action="lessons:read", resource_type="lesson", owner_id="kid-1"),
            PermissionCheck(action="lessons:write", resource_type="lesson", owner_id="stu-1"),
            PermissionCheck(action="bookings:read", resource_type="booking", owner_id="x-9"),
            PermissionCheck(action="profile:read", resource_type="user", owner_id="stu-1"),
        ]

        decisions = await evaluator.evaluate_many(principal, checks)

        assert [d.allowed for d in decisions] == [True, False, False, True]
        assert decisions[1].code is DenialCode.ROLE_NOT_PERMITTED
        assert decisions[2].code is DenialCode.STUDENT_NOT_OWNER
        ownership_provider.fetch.assert_awaited_once_with("stu-1", ORG_ID)

    async def test_organization_mismatch_denies_every_check(
        self,
        evaluator: PolicyEvaluator,
        ownership_provider: AsyncMock,
        audit_sink: MagicMock,
    ):
        principal = Principal(id="adm-1", role="admin", organization_id=ORG_ID)
        checks = [
            PermissionCheck(action="users:read", resource_type="user"),
            PermissionCheck(action="org:read", resource_type="organization"),
        ]

        decisions = await evaluator.evaluate_many(principal, checks, OTHER_ORG_ID)

        assert all(d.code is DenialCode.ORGANIZATION_MISMATCH for d in decisions)
        assert decisions[0].reason == (
            "User token organization does not match request organization"
        )
        assert audit_sink.record.call_count == 2
        ownership_provider.fetch.assert_not_awaited()

    async def test_principal_without_org_adopts_request_org(
        self,
        evaluator: PolicyEvaluator,
        ownership_provider: AsyncMock,
    ):
        ownership_provider.fetch.return_value = OwnershipContext(
            role="instructor", assigned_student_ids=("stu-1",)
        )
        principal = Principal(id="inst-1", role="instructor")

        decisions = await evaluator.evaluate_many(
            principal,
            [PermissionCheck(action="lessons:read", resource_type="lesson")],
            ORG_ID,
        )

        assert decisions == [Decision.allow(scoped_resource_ids=["stu-1"])]
        ownership_provider.fetch.assert_awaited_once_with("inst-1", ORG_ID)

    async def test_empty_checks(self, evaluator: PolicyEvaluator):
        principal = Principal(id="own-1", role="owner")

        assert await evaluator.evaluate_many(principal, []) == []


class TestEnforce:
    """Tests for converting decisions into exceptions."""

    def test_allowed_decision_is_returned(self):
        decision = Decision.allow(scoped_resource_ids=["stu-1"])

        assert enforce(decision) is decision

    def test_denial_raises_policy_denied(self):
        decision = Decision.deny(
            "Instructor 'i' is not assigned to student 's'",
            DenialCode.INSTRUCTOR_NOT_ASSIGNED,
        )

        with pytest.raises(PolicyDeniedError) as exc_info:
            enforce(decision)

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == decision.reason
        assert exc_info.value.error_code == "instructor_not_assigned"
        assert exc_info.value.details == {"reason_code": "instructor_not_assigned"}

    def test_missing_organization_raises_dedicated_error(self):
        decision = Decision.deny(
            "Organization context is required for scoped permissions",
            DenialCode.ORGANIZATION_CONTEXT_REQUIRED,
        )

        with pytest.raises(MissingOrganizationContextError) as exc_info:
            enforce(decision)

        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == "organization_context_required"


class TestDocumentedScenarios:
    """End-to-end evaluator scenarios with literal ids."""

    async def test_admin_missing_second_action(
        self, evaluator: PolicyEvaluator, ownership_provider: AsyncMock
    ):
        """The first missing action in declared order is named."""
        principal = Principal(id="adm-1", role="admin", organization_id=ORG_ID)

        decision = await evaluator.authorize(
            principal, permissions("students:read", "org:settings")
        )

        assert decision.reason == (
            "Role 'admin' does not have permission for action 'org:settings'"
        )
        ownership_provider.fetch.assert_not_awaited()

    async def test_instructor_lesson_read_is_scoped(
        self, evaluator: PolicyEvaluator, ownership_provider: AsyncMock
    ):
        ownership_provider.fetch.return_value = OwnershipContext(
            role="instructor",
            assigned_student_ids=("student-456", "student-789"),
        )
        principal = Principal(id="user-123", role="instructor", organization_id="org-456")

        decision = await evaluator.evaluate(
            principal,
            "lessons:read",
            ResourceDescriptor(type=ResourceType.LESSON, owner_id="student-456"),
        )

        assert decision.allowed is True
        assert decision.scoped_resource_ids == ["student-456", "student-789"]
        ownership_provider.fetch.assert_awaited_once_with("user-123", "org-456")

    async def test_owner_delete_and_settings(
        self, evaluator: PolicyEvaluator, ownership_provider: AsyncMock
    ):
        principal = Principal(id="own-1", role="owner", organization_id=ORG_ID)

        decision = await evaluator.authorize(
            principal, permissions("users:delete", "org:settings")
        )

        assert decision.allowed is True
        ownership_provider.fetch.assert_not_awaited()

    async def test_unauthenticated_skips_matrix(self, ownership_provider: AsyncMock):
        matrix = MagicMock()
        evaluator = PolicyEvaluator(ownership_provider=ownership_provider, matrix=matrix)

        with pytest.raises(UnauthenticatedError):
            await evaluator.authorize(None, permissions("lessons:read"))

        matrix.first_missing.assert_not_called()
