"""Value types for access-control evaluation.

Roles, actions and resource types are closed vocabularies. Principals,
resource descriptors and decisions are immutable pydantic models so they
can be shared freely between concurrent evaluations.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class OrgRole(StrEnum):
    """Organizational role of a principal within a tenant."""

    OWNER = "owner"
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"

    @property
    def is_scoped(self) -> bool:
        """Whether permissions of this role are restricted by ownership."""
        return self in (OrgRole.INSTRUCTOR, OrgRole.STUDENT)


class PermissionAction(StrEnum):
    """Permission actions, namespaced by resource category."""

    # User management
    USERS_READ = "users:read"
    USERS_WRITE = "users:write"
    USERS_DELETE = "users:delete"

    # Profile management
    PROFILE_READ = "profile:read"
    PROFILE_WRITE = "profile:write"

    # Student management
    STUDENTS_READ = "students:read"
    STUDENTS_WRITE = "students:write"
    STUDENTS_DELETE = "students:delete"

    # Instructor management
    INSTRUCTORS_READ = "instructors:read"
    INSTRUCTORS_WRITE = "instructors:write"
    INSTRUCTORS_DELETE = "instructors:delete"

    # Lesson management
    LESSONS_READ = "lessons:read"
    LESSONS_WRITE = "lessons:write"
    LESSONS_DELETE = "lessons:delete"
    LESSONS_CREATE = "lessons:create"

    # Booking management
    BOOKINGS_READ = "bookings:read"
    BOOKINGS_WRITE = "bookings:write"
    BOOKINGS_DELETE = "bookings:delete"
    BOOKINGS_CREATE = "bookings:create"

    # Payment management
    PAYMENTS_READ = "payments:read"
    PAYMENTS_WRITE = "payments:write"
    PAYMENTS_REFUND = "payments:refund"

    # Organization management
    ORG_READ = "org:read"
    ORG_WRITE = "org:write"
    ORG_SETTINGS = "org:settings"

    # Audit logs
    AUDIT_READ = "audit:read"

    @property
    def namespace(self) -> str:
        """Resource-category prefix including the colon, e.g. ``"lessons:"``."""
        prefix, _, _ = self.value.partition(":")
        return f"{prefix}:"

    @property
    def is_student_related(self) -> bool:
        """Whether the action touches data anchored to a student."""
        return self.namespace in STUDENT_RELATED_NAMESPACES


STUDENT_RELATED_NAMESPACES = frozenset({"students:", "lessons:", "bookings:", "payments:"})


class ResourceType(StrEnum):
    """Kinds of resources an action can target."""

    USER = "user"
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    LESSON = "lesson"
    BOOKING = "booking"
    PAYMENT = "payment"
    ORGANIZATION = "organization"
    AUDIT_LOG = "audit_log"


class DenialCode(StrEnum):
    """Stable machine-readable codes for policy denials."""

    ROLE_NOT_PERMITTED = "role_not_permitted"
    ROLE_REQUIRED = "role_required"
    ORGANIZATION_CONTEXT_REQUIRED = "organization_context_required"
    ORGANIZATION_MISMATCH = "organization_mismatch"
    MEMBERSHIP_NOT_FOUND = "membership_not_found"
    INSTRUCTOR_NOT_ASSIGNED = "instructor_not_assigned"
    STUDENT_NOT_OWNER = "student_not_owner"


class Principal(BaseModel):
    """The authenticated actor making a request.

    ``role`` holds the raw role claim issued at authentication time. It is
    validated against :class:`OrgRole` during evaluation; a value outside
    the enumeration is an integrity error, not a denial.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: str
    organization_id: str | None = None


class ResourceDescriptor(BaseModel):
    """Target of an action.

    Attributes:
        type: Kind of resource
        id: Identifier of the specific instance, if any
        owner_id: Identifier of the owning student (e.g. a lesson's student),
            the anchor for ownership scoping
    """

    model_config = ConfigDict(frozen=True)

    type: ResourceType
    id: str | None = None
    owner_id: str | None = None


class OwnershipContext(BaseModel):
    """Assignment relationships of a principal inside one organization.

    Fetched fresh per evaluation from the ownership provider.
    """

    model_config = ConfigDict(frozen=True)

    role: str
    assigned_student_ids: tuple[str, ...] = ()
    child_student_ids: tuple[str, ...] = ()


class Decision(BaseModel):
    """Outcome of an authorization check.

    Attributes:
        allowed: Whether the action is permitted
        reason: Stable human-readable denial reason
        code: Machine-readable denial code
        scoped: Whether the allow is restricted to ``scoped_resource_ids``
        scoped_resource_ids: Student ids the caller should filter results by
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str | None = None
    code: DenialCode | None = None
    scoped: bool = False
    scoped_resource_ids: list[str] | None = None

    @classmethod
    def allow(cls, scoped_resource_ids: list[str] | None = None) -> "Decision":
        """Build an allow decision, optionally scoped to student ids."""
        if scoped_resource_ids is None:
            return cls(allowed=True)
        return cls(allowed=True, scoped=True, scoped_resource_ids=scoped_resource_ids)

    @classmethod
    def deny(cls, reason: str, code: DenialCode) -> "Decision":
        """Build a denial carrying a reason and code."""
        return cls(allowed=False, reason=reason, code=code)


class PermissionCheck(BaseModel):
    """One entry of a bulk evaluation request."""

    model_config = ConfigDict(frozen=True)

    action: PermissionAction
    resource_type: ResourceType
    resource_id: str | None = None
    owner_id: str | None = Field(default=None, description="Owning student id")

    def to_resource(self) -> ResourceDescriptor:
        return ResourceDescriptor(
            type=self.resource_type,
            id=self.resource_id,
            owner_id=self.owner_id,
        )
