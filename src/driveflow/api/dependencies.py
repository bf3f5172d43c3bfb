"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from driveflow.core.access.evaluator import PolicyEvaluator
from driveflow.core.database import get_db


# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


async def get_policy_evaluator(request: Request, db: DBSession) -> PolicyEvaluator:
    """Build a policy evaluator bound to the request's database session.

    Ownership lookups go through the membership repository; denials are
    recorded through the application's audit sink (``app.state.audit_sink``).
    """
    from driveflow.modules.memberships.repos import MembershipRepository  # noqa: PLC0415

    return PolicyEvaluator(
        ownership_provider=MembershipRepository(db),
        audit_sink=getattr(request.app.state, "audit_sink", None),
    )


Evaluator = Annotated[PolicyEvaluator, Depends(get_policy_evaluator)]
