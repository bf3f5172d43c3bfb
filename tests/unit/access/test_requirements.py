"""Unit tests for declarative access requirements."""

import pytest

from driveflow.core.access import OrgRole, PermissionAction
from driveflow.core.access.requirements import (
    NO_RESTRICTION,
    OWNER_ONLY,
    STAFF_ONLY,
    USER_MANAGEMENT,
    AccessRequirement,
    permissions,
    read_only,
    roles,
)


pytestmark = pytest.mark.unit


class TestAccessRequirement:
    """Tests for building and combining requirements."""

    def test_no_restriction_is_empty(self):
        assert NO_RESTRICTION.is_empty is True
        assert OWNER_ONLY.is_empty is False

    def test_builders_coerce_strings(self):
        requirement = permissions("lessons:read") + roles("student")

        assert requirement == AccessRequirement(
            actions=(PermissionAction.LESSONS_READ,),
            roles=(OrgRole.STUDENT,),
        )

    def test_unknown_action_rejected_at_registration(self):
        with pytest.raises(ValueError):
            permissions("lessons:teleport")

    def test_combining_deduplicates_and_keeps_order(self):
        combined = STAFF_ONLY + OWNER_ONLY + USER_MANAGEMENT + permissions("users:read")

        assert combined.roles == (OrgRole.OWNER, OrgRole.ADMIN, OrgRole.INSTRUCTOR)
        assert combined.actions == (
            PermissionAction.USERS_READ,
            PermissionAction.USERS_WRITE,
        )

    def test_read_only(self):
        assert read_only("bookings").actions == (PermissionAction.BOOKINGS_READ,)
