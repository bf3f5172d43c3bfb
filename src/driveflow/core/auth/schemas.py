"""Authentication schemas for token handling."""

from datetime import datetime

from pydantic import BaseModel

from driveflow.core.access.types import Principal


class TokenData(BaseModel):
    """Data extracted from a JWT token.

    Attributes:
        user_id: Opaque user identifier (``sub`` claim)
        role: Organizational role claim, validated during authorization
        organization_id: Organization the token was issued for, if any
        exp: Token expiration time
        type: Token type (only "access" tokens authenticate requests)
        jti: Unique token id
    """

    user_id: str
    role: str
    organization_id: str | None = None
    exp: datetime
    type: str = "access"
    jti: str | None = None

    def to_principal(self) -> Principal:
        return Principal(
            id=self.user_id,
            role=self.role,
            organization_id=self.organization_id,
        )
