"""Collaborator contracts consumed by the policy evaluator."""

from typing import Protocol, runtime_checkable

from driveflow.core.access.types import OwnershipContext


@runtime_checkable
class OwnershipProvider(Protocol):
    """Directory lookup for a principal's assignment relationships.

    Implementations return ``None`` when the principal has no membership in
    the organization and raise for transport or storage failures. The two
    outcomes must stay distinguishable.
    """

    async def fetch(
        self, principal_id: str, organization_id: str
    ) -> OwnershipContext | None: ...
