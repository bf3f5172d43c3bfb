"""Static role -> permission matrix.

The matrix is built once at import time and never mutated. Construction
requires an entry for every :class:`OrgRole`, so lookups after role
validation cannot miss.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from driveflow.core.access.types import OrgRole, PermissionAction


A = PermissionAction


class PermissionMatrix:
    """Immutable mapping from role to the actions that role may perform.

    Safe for unlimited concurrent readers.
    """

    __slots__ = ("_actions",)

    def __init__(self, table: Mapping[OrgRole, Iterable[PermissionAction]]) -> None:
        missing = [role.value for role in OrgRole if role not in table]
        if missing:
            raise ValueError(f"Permission matrix is missing roles: {', '.join(missing)}")

        self._actions: Mapping[OrgRole, frozenset[PermissionAction]] = MappingProxyType(
            {role: frozenset(table[role]) for role in OrgRole}
        )

    def allowed_actions(self, role: OrgRole) -> frozenset[PermissionAction]:
        """Return the set of actions ``role`` may perform at all."""
        return self._actions[role]

    def allows(self, role: OrgRole, action: PermissionAction | str) -> bool:
        """Check whether ``action`` is in the role's action set.

        Unknown action strings are never allowed.
        """
        return action in self._actions[role]

    def first_missing(
        self, role: OrgRole, actions: Iterable[PermissionAction | str]
    ) -> PermissionAction | str | None:
        """Return the first action, in the given order, the role lacks."""
        for action in actions:
            if not self.allows(role, action):
                return action
        return None

    def as_dict(self) -> dict[str, list[str]]:
        """Serialize as ``{role: [action, ...]}`` in vocabulary order."""
        return {
            role.value: [a.value for a in PermissionAction if a in self._actions[role]]
            for role in OrgRole
        }

    def __repr__(self) -> str:
        sizes = ", ".join(f"{r.value}={len(a)}" for r, a in self._actions.items())
        return f"<PermissionMatrix({sizes})>"


_ADMIN_ACTIONS = (
    A.USERS_READ, A.USERS_WRITE,
    A.PROFILE_READ, A.PROFILE_WRITE,
    A.STUDENTS_READ, A.STUDENTS_WRITE, A.STUDENTS_DELETE,
    A.INSTRUCTORS_READ, A.INSTRUCTORS_WRITE,
    A.LESSONS_READ, A.LESSONS_WRITE, A.LESSONS_DELETE, A.LESSONS_CREATE,
    A.BOOKINGS_READ, A.BOOKINGS_WRITE, A.BOOKINGS_DELETE, A.BOOKINGS_CREATE,
    A.PAYMENTS_READ, A.PAYMENTS_WRITE, A.PAYMENTS_REFUND,
    A.ORG_READ,
    A.AUDIT_READ,
)  # fmt: skip

DEFAULT_PERMISSIONS: Mapping[OrgRole, tuple[PermissionAction, ...]] = MappingProxyType({
    # Everything admin has, plus user/instructor deletion and org management
    OrgRole.OWNER: (
        *_ADMIN_ACTIONS,
        A.USERS_DELETE,
        A.INSTRUCTORS_DELETE,
        A.ORG_WRITE,
        A.ORG_SETTINGS,
    ),
    OrgRole.ADMIN: _ADMIN_ACTIONS,
    # Restricted to assigned students at evaluation time
    OrgRole.INSTRUCTOR: (
        A.PROFILE_READ, A.PROFILE_WRITE,
        A.STUDENTS_READ,
        A.LESSONS_READ, A.LESSONS_WRITE, A.LESSONS_CREATE,
        A.BOOKINGS_READ, A.BOOKINGS_WRITE,
        A.PAYMENTS_READ,
    ),
    # Restricted to self and guardian-linked children at evaluation time
    OrgRole.STUDENT: (
        A.PROFILE_READ, A.PROFILE_WRITE,
        A.LESSONS_READ,
        A.BOOKINGS_READ, A.BOOKINGS_CREATE,
    ),
})  # fmt: skip

default_matrix = PermissionMatrix(DEFAULT_PERMISSIONS)
