"""Principal factory and token helpers for tests."""

from uuid import uuid4

from polyfactory.factories.pydantic_factory import ModelFactory

from driveflow.core.access.types import OrgRole, Principal
from driveflow.core.auth import create_access_token


class PrincipalFactory(ModelFactory):
    """Factory for creating test Principal instances."""

    __model__ = Principal

    @classmethod
    def id(cls) -> str:
        """Generate a user id."""
        return f"user-{uuid4().hex[:8]}"

    @classmethod
    def role(cls) -> str:
        """Default to the owner role."""
        return OrgRole.OWNER.value

    @classmethod
    def organization_id(cls) -> str:
        """Generate an organization id."""
        return str(uuid4())


def bearer(user_id: str, role: str, organization_id: str | None = None) -> dict[str, str]:
    """Authorization header for a freshly issued access token."""
    token = create_access_token(user_id=user_id, role=role, organization_id=organization_id)
    return {"Authorization": f"Bearer {token}"}
