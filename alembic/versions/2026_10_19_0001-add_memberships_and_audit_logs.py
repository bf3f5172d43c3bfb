"""add_memberships_and_audit_logs

Revision ID: 5e1d2a7c9b30
Revises:
Create Date: 2026-10-19 00:01:00.000000

This migration adds:
- organizations table (tenants)
- organization_memberships, instructor_assignments and student_guardians
  tables backing ownership lookups
- audit_logs table for authorization denials
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5e1d2a7c9b30"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _organization_fk(table: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["organization_id"],
        ["organizations.id"],
        name=f"fk_{table}_organization_id_organizations",
        ondelete="CASCADE",
    )


def upgrade() -> None:
    """Create access-control tables."""
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=63), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_organizations"),
    )
    op.create_index("ix_organizations_id", "organizations", ["id"])
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)

    op.create_table(
        "organization_memberships",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_organization_memberships"),
        _organization_fk("organization_memberships"),
        sa.UniqueConstraint(
            "organization_id", "user_id", name="uq_membership_org_user"
        ),
    )
    op.create_index(
        "ix_organization_memberships_id", "organization_memberships", ["id"]
    )
    op.create_index(
        "ix_organization_memberships_organization_id",
        "organization_memberships",
        ["organization_id"],
    )
    op.create_index(
        "ix_organization_memberships_user_id",
        "organization_memberships",
        ["user_id"],
    )

    op.create_table(
        "instructor_assignments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("instructor_id", sa.String(length=255), nullable=False),
        sa.Column("student_id", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_instructor_assignments"),
        _organization_fk("instructor_assignments"),
        sa.UniqueConstraint(
            "organization_id",
            "instructor_id",
            "student_id",
            name="uq_instructor_assignment",
        ),
    )
    op.create_index("ix_instructor_assignments_id", "instructor_assignments", ["id"])
    op.create_index(
        "ix_instructor_assignments_organization_id",
        "instructor_assignments",
        ["organization_id"],
    )
    op.create_index(
        "ix_instructor_assignments_instructor_id",
        "instructor_assignments",
        ["instructor_id"],
    )

    op.create_table(
        "student_guardians",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("guardian_id", sa.String(length=255), nullable=False),
        sa.Column("student_id", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_student_guardians"),
        _organization_fk("student_guardians"),
        sa.UniqueConstraint(
            "organization_id",
            "guardian_id",
            "student_id",
            name="uq_student_guardian",
        ),
    )
    op.create_index("ix_student_guardians_id", "student_guardians", ["id"])
    op.create_index(
        "ix_student_guardians_organization_id",
        "student_guardians",
        ["organization_id"],
    )
    op.create_index(
        "ix_student_guardians_guardian_id", "student_guardians", ["guardian_id"]
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.String(length=255), nullable=False),
        # What was attempted
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("resource_type", sa.String(length=100), nullable=False),
        sa.Column("resource_id", sa.String(length=255), nullable=True),
        # Request context
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
        _organization_fk("audit_logs"),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])
    op.create_index("ix_audit_logs_organization_id", "audit_logs", ["organization_id"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_resource_type", "audit_logs", ["resource_type"])
    op.create_index("ix_audit_logs_request_id", "audit_logs", ["request_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    # Denials per organization over time
    op.create_index(
        "ix_audit_logs_organization_created",
        "audit_logs",
        ["organization_id", "created_at"],
    )


def downgrade() -> None:
    """Drop access-control tables."""
    op.drop_table("audit_logs")
    op.drop_table("student_guardians")
    op.drop_table("instructor_assignments")
    op.drop_table("organization_memberships")
    op.drop_table("organizations")
