"""JWT access token handling.

Tokens carry the principal's id, organizational role and organization.
Roles are copied verbatim into the principal; validating them against the
closed role enumeration is the policy evaluator's job.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from driveflow.config import settings
from driveflow.core.auth.schemas import TokenData
from driveflow.core.constants import ACCESS_TOKEN_JTI_LENGTH


def create_access_token(
    user_id: str,
    role: str,
    organization_id: str | None = None,
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create a short-lived JWT access token.

    Args:
        user_id: The user's identifier
        role: The user's organizational role
        organization_id: The organization the user acts within
        expires_delta: Optional custom expiration time
        additional_claims: Optional extra claims to include

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(UTC)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "type": "access",
        "iat": now,
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
    }
    if organization_id:
        to_encode["org_id"] = organization_id

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> TokenData | None:
    """Decode and validate a JWT token.

    Args:
        token: The JWT token to decode

    Returns:
        TokenData if valid, None if invalid, expired, or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    role = payload.get("role")
    exp = payload.get("exp")

    if not user_id or not role or exp is None:
        return None

    return TokenData(
        user_id=str(user_id),
        role=str(role),
        organization_id=payload.get("org_id"),
        exp=datetime.fromtimestamp(exp, tz=UTC),
        type=payload.get("type", "access"),
        jti=payload.get("jti"),
    )
