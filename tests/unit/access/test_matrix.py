"""Unit tests for the permission matrix and action vocabulary."""

import pytest

from driveflow.core.access import (
    DEFAULT_PERMISSIONS,
    OrgRole,
    PermissionAction,
    PermissionMatrix,
    default_matrix,
)


pytestmark = pytest.mark.unit


class TestDefaultMatrix:
    """Tests for the built-in role table."""

    def test_owner_is_superset_of_admin(self):
        owner = default_matrix.allowed_actions(OrgRole.OWNER)
        admin = default_matrix.allowed_actions(OrgRole.ADMIN)

        assert admin < owner
        assert owner - admin == {
            PermissionAction.USERS_DELETE,
            PermissionAction.INSTRUCTORS_DELETE,
            PermissionAction.ORG_WRITE,
            PermissionAction.ORG_SETTINGS,
        }

    def test_owner_has_every_action(self):
        assert default_matrix.allowed_actions(OrgRole.OWNER) == set(PermissionAction)

    def test_instructor_actions(self):
        assert default_matrix.allowed_actions(OrgRole.INSTRUCTOR) == {
            PermissionAction.PROFILE_READ,
            PermissionAction.PROFILE_WRITE,
            PermissionAction.STUDENTS_READ,
            PermissionAction.LESSONS_READ,
            PermissionAction.LESSONS_WRITE,
            PermissionAction.LESSONS_CREATE,
            PermissionAction.BOOKINGS_READ,
            PermissionAction.BOOKINGS_WRITE,
            PermissionAction.PAYMENTS_READ,
        }

    def test_student_actions(self):
        assert default_matrix.allowed_actions(OrgRole.STUDENT) == {
            PermissionAction.PROFILE_READ,
            PermissionAction.PROFILE_WRITE,
            PermissionAction.LESSONS_READ,
            PermissionAction.BOOKINGS_READ,
            PermissionAction.BOOKINGS_CREATE,
        }

    def test_allows_accepts_plain_strings(self):
        assert default_matrix.allows(OrgRole.STUDENT, "lessons:read") is True
        assert default_matrix.allows(OrgRole.STUDENT, "lessons:delete") is False
        assert default_matrix.allows(OrgRole.OWNER, "unknown:action") is False

    def test_first_missing_respects_order(self):
        missing = default_matrix.first_missing(
            OrgRole.INSTRUCTOR,
            ["lessons:read", "payments:refund", "users:delete"],
        )

        assert missing == "payments:refund"

    def test_as_dict_uses_vocabulary_order(self):
        table = default_matrix.as_dict()

        assert set(table) == {"owner", "admin", "instructor", "student"}
        assert table["student"] == [
            "profile:read",
            "profile:write",
            "lessons:read",
            "bookings:read",
            "bookings:create",
        ]


class TestPermissionMatrix:
    """Tests for matrix construction."""

    def test_missing_role_rejected(self):
        table = {role: DEFAULT_PERMISSIONS[role] for role in OrgRole}
        del table[OrgRole.STUDENT]

        with pytest.raises(ValueError, match="missing roles: student"):
            PermissionMatrix(table)

    def test_matrix_is_read_only(self):
        source = {role: list(DEFAULT_PERMISSIONS[role]) for role in OrgRole}
        matrix = PermissionMatrix(source)

        source[OrgRole.STUDENT].append(PermissionAction.USERS_DELETE)

        assert not matrix.allows(OrgRole.STUDENT, PermissionAction.USERS_DELETE)


class TestVocabulary:
    """Tests for action and role enumerations."""

    @pytest.mark.parametrize(
        ("action", "expected"),
        [
            (PermissionAction.STUDENTS_READ, True),
            (PermissionAction.LESSONS_CREATE, True),
            (PermissionAction.BOOKINGS_DELETE, True),
            (PermissionAction.PAYMENTS_REFUND, True),
            (PermissionAction.PROFILE_READ, False),
            (PermissionAction.INSTRUCTORS_READ, False),
            (PermissionAction.AUDIT_READ, False),
        ],
    )
    def test_student_related_actions(self, action: PermissionAction, expected: bool):
        assert action.is_student_related is expected

    def test_scoped_roles(self):
        assert [r for r in OrgRole if r.is_scoped] == [
            OrgRole.INSTRUCTOR,
            OrgRole.STUDENT,
        ]
