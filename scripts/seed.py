#!/usr/bin/env python
"""
Generate demo/seed data for development.

Creates a driving school with one member per role plus instructor
assignments and a guardian link, so every access-scoping path can be
exercised against a local database.
"""

import argparse
import asyncio
import sys
from uuid import uuid4

from sqlalchemy import select

from driveflow.core.access import OrgRole
from driveflow.core.database import async_session_factory
from driveflow.modules.memberships.models import (
    InstructorAssignment,
    Organization,
    OrganizationMembership,
    StudentGuardian,
)


DEMO_MEMBERS = [
    ("owner-1", OrgRole.OWNER),
    ("admin-1", OrgRole.ADMIN),
    ("instructor-1", OrgRole.INSTRUCTOR),
    ("instructor-2", OrgRole.INSTRUCTOR),
    ("student-1", OrgRole.STUDENT),
    ("student-2", OrgRole.STUDENT),
    ("student-3", OrgRole.STUDENT),
]

DEMO_ASSIGNMENTS = [
    ("instructor-1", "student-1"),
    ("instructor-1", "student-2"),
    ("instructor-2", "student-3"),
]

DEMO_GUARDIANS = [("student-1", "student-3")]


async def get_or_create_organization(session, name: str, slug: str) -> Organization:
    """Return the organization with ``slug``, creating it if needed."""
    result = await session.execute(select(Organization).where(Organization.slug == slug))
    existing = result.scalar_one_or_none()

    if existing:
        print(f"Organization already exists: {existing.name} ({existing.id})")
        return existing

    organization = Organization(id=uuid4(), name=name, slug=slug)
    session.add(organization)
    await session.flush()
    print(f"Created organization: {organization.name} ({organization.id})")
    return organization


async def seed_default() -> None:
    """Create an empty default organization."""
    async with async_session_factory() as session:
        await get_or_create_organization(session, "Default Driving School", "default")
        await session.commit()


async def seed_demo() -> None:
    """Create a demo organization with members, assignments and guardians."""
    async with async_session_factory() as session:
        organization = await get_or_create_organization(
            session, "Demo Driving School", "demo"
        )

        result = await session.execute(
            select(OrganizationMembership.user_id).where(
                OrganizationMembership.organization_id == organization.id
            )
        )
        existing_members = set(result.scalars().all())
        if existing_members:
            print(f"Demo members already exist: {len(existing_members)}")
            return

        for user_id, role in DEMO_MEMBERS:
            session.add(
                OrganizationMembership(
                    organization_id=organization.id,
                    user_id=user_id,
                    role=role.value,
                )
            )
            print(f"Added {role.value}: {user_id}")

        for instructor_id, student_id in DEMO_ASSIGNMENTS:
            session.add(
                InstructorAssignment(
                    organization_id=organization.id,
                    instructor_id=instructor_id,
                    student_id=student_id,
                )
            )

        for guardian_id, student_id in DEMO_GUARDIANS:
            session.add(
                StudentGuardian(
                    organization_id=organization.id,
                    guardian_id=guardian_id,
                    student_id=student_id,
                )
            )

        await session.commit()


async def main(scenario: str) -> None:
    """Run the seeding based on scenario."""
    if scenario == "default":
        await seed_default()
    elif scenario == "demo":
        await seed_demo()
    else:
        print(f"Unknown scenario: {scenario}")
        print("Available scenarios: default, demo")
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed database with demo data")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help="Seed scenario to run (default, demo)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario))
