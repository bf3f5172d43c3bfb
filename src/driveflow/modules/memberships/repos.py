"""Membership repository: the database-backed ownership provider."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from driveflow.core.access.types import OrgRole, OwnershipContext
from driveflow.modules.memberships.models import (
    InstructorAssignment,
    OrganizationMembership,
    StudentGuardian,
)


class MembershipRepository:
    """Resolves a principal's assignment relationships from the database.

    Implements the ``OwnershipProvider`` contract: an unknown membership
    yields ``None``; database errors propagate to the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_membership(
        self, user_id: str, organization_id: UUID
    ) -> OrganizationMembership | None:
        """Get a user's membership row in an organization."""
        stmt = select(OrganizationMembership).where(
            OrganizationMembership.user_id == user_id,
            OrganizationMembership.organization_id == organization_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_assigned_student_ids(
        self, instructor_id: str, organization_id: UUID
    ) -> list[str]:
        """Get students assigned to an instructor, oldest assignment first."""
        stmt = (
            select(InstructorAssignment.student_id)
            .where(
                InstructorAssignment.instructor_id == instructor_id,
                InstructorAssignment.organization_id == organization_id,
            )
            .order_by(InstructorAssignment.created_at, InstructorAssignment.student_id)
        )
        result = await self.session.execute(stmt)
        return list(dict.fromkeys(result.scalars().all()))

    async def get_child_student_ids(
        self, guardian_id: str, organization_id: UUID
    ) -> list[str]:
        """Get students linked to a guardian."""
        stmt = (
            select(StudentGuardian.student_id)
            .where(
                StudentGuardian.guardian_id == guardian_id,
                StudentGuardian.organization_id == organization_id,
            )
            .order_by(StudentGuardian.created_at, StudentGuardian.student_id)
        )
        result = await self.session.execute(stmt)
        return list(dict.fromkeys(result.scalars().all()))

    async def fetch(
        self, principal_id: str, organization_id: str
    ) -> OwnershipContext | None:
        """Build the ownership context for a principal.

        Args:
            principal_id: The principal's identifier
            organization_id: Organization identifier (UUID string)

        Returns:
            OwnershipContext, or None if the principal is not a member
        """
        try:
            org_uuid = UUID(organization_id)
        except ValueError:
            return None

        membership = await self.get_membership(principal_id, org_uuid)
        if membership is None:
            return None

        assigned: list[str] = []
        children: list[str] = []
        if membership.role == OrgRole.INSTRUCTOR:
            assigned = await self.get_assigned_student_ids(principal_id, org_uuid)
        elif membership.role == OrgRole.STUDENT:
            children = await self.get_child_student_ids(principal_id, org_uuid)

        return OwnershipContext(
            role=membership.role,
            assigned_student_ids=tuple(assigned),
            child_student_ids=tuple(children),
        )
