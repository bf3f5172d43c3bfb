"""Declarative access requirements attached to routes and services.

A requirement is plain configuration built at registration time:
a list of roles (any one must match) and a list of actions (all must be
granted). Both lists must pass for an allow; an empty requirement
places no restriction at all.

Usage:
    @router.delete("/users/{user_id}")
    async def delete_user(
        decision: Annotated[Decision, require_access(USER_MANAGEMENT)],
    ): ...
"""

from dataclasses import dataclass
from typing import TypeVar

from driveflow.core.access.types import OrgRole, PermissionAction


A = PermissionAction
T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class AccessRequirement:
    """Roles and actions an endpoint declares.

    Attributes:
        actions: Actions the principal's role must all hold, checked in
            declared order so the first missing one is reported
        roles: Roles allowed to call the endpoint; empty means any role
    """

    actions: tuple[PermissionAction, ...] = ()
    roles: tuple[OrgRole, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.actions and not self.roles

    def __add__(self, other: "AccessRequirement") -> "AccessRequirement":
        return AccessRequirement(
            actions=_merge(self.actions, other.actions),
            roles=_merge(self.roles, other.roles),
        )


def _merge(first: tuple[T, ...], second: tuple[T, ...]) -> tuple[T, ...]:
    return first + tuple(item for item in second if item not in first)


def permissions(*actions: PermissionAction | str) -> AccessRequirement:
    """Require every one of ``actions``."""
    return AccessRequirement(actions=tuple(PermissionAction(a) for a in actions))


def roles(*names: OrgRole | str) -> AccessRequirement:
    """Require one of ``names``."""
    return AccessRequirement(roles=tuple(OrgRole(r) for r in names))


NO_RESTRICTION = AccessRequirement()

# Role presets
OWNER_ONLY = roles(OrgRole.OWNER)
ADMIN_OR_OWNER = roles(OrgRole.OWNER, OrgRole.ADMIN)
STAFF_ONLY = roles(OrgRole.OWNER, OrgRole.ADMIN, OrgRole.INSTRUCTOR)
INSTRUCTOR_ONLY = roles(OrgRole.INSTRUCTOR)
STUDENT_ONLY = roles(OrgRole.STUDENT)

# Management presets
USER_MANAGEMENT = permissions(A.USERS_READ, A.USERS_WRITE)
STUDENT_MANAGEMENT = permissions(A.STUDENTS_READ, A.STUDENTS_WRITE)
INSTRUCTOR_MANAGEMENT = permissions(A.INSTRUCTORS_READ, A.INSTRUCTORS_WRITE)
LESSON_MANAGEMENT = permissions(A.LESSONS_READ, A.LESSONS_WRITE, A.LESSONS_CREATE)
BOOKING_MANAGEMENT = permissions(A.BOOKINGS_READ, A.BOOKINGS_WRITE, A.BOOKINGS_CREATE)
PAYMENT_MANAGEMENT = permissions(A.PAYMENTS_READ, A.PAYMENTS_WRITE)
ORG_MANAGEMENT = permissions(A.ORG_READ, A.ORG_WRITE, A.ORG_SETTINGS)

# Scoped read presets: instructors see assigned students, students see
# themselves and their children
SCOPED_STUDENT_ACCESS = permissions(A.STUDENTS_READ)
SCOPED_LESSON_ACCESS = permissions(A.LESSONS_READ)
SCOPED_BOOKING_ACCESS = permissions(A.BOOKINGS_READ)


def read_only(resource: str) -> AccessRequirement:
    """Require the ``<resource>:read`` action, e.g. ``read_only("lessons")``."""
    return permissions(f"{resource}:read")
