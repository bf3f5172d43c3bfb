"""Organization and membership database models.

These tables back the ownership provider:
- Organization: a tenant
- OrganizationMembership: a user's role within an organization
- InstructorAssignment: instructor -> student assignments
- StudentGuardian: guardian -> child student links

User and student identifiers are opaque strings issued by the user
directory, not foreign keys.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from driveflow.core.constants import (
    MAX_IDENTIFIER_LENGTH,
    MAX_NAME_LENGTH,
    MAX_ROLE_NAME_LENGTH,
    MAX_SLUG_LENGTH,
)
from driveflow.core.database.base import (
    Base,
    OrganizationMixin,
    TimestampMixin,
    UUIDMixin,
)


class Organization(Base, UUIDMixin, TimestampMixin):
    """A driving school tenant."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(MAX_SLUG_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, slug={self.slug})>"


class OrganizationMembership(Base, UUIDMixin, TimestampMixin, OrganizationMixin):
    """A user's membership and role within an organization.

    Attributes:
        user_id: The member's identifier
        role: One of owner, admin, instructor, student
    """

    __tablename__ = "organization_memberships"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_membership_org_user"),
    )

    user_id: Mapped[str] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(MAX_ROLE_NAME_LENGTH), nullable=False)

    def __repr__(self) -> str:
        return f"<OrganizationMembership(user_id={self.user_id}, role={self.role})>"


class InstructorAssignment(Base, UUIDMixin, TimestampMixin, OrganizationMixin):
    """Links an instructor to a student they teach."""

    __tablename__ = "instructor_assignments"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "instructor_id",
            "student_id",
            name="uq_instructor_assignment",
        ),
    )

    instructor_id: Mapped[str] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH),
        nullable=False,
    )


class StudentGuardian(Base, UUIDMixin, TimestampMixin, OrganizationMixin):
    """Links a guardian (a student-role user) to a child student."""

    __tablename__ = "student_guardians"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "guardian_id",
            "student_id",
            name="uq_student_guardian",
        ),
    )

    guardian_id: Mapped[str] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH),
        nullable=False,
    )
