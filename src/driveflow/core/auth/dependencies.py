"""FastAPI dependencies for authentication.

This module provides FastAPI dependency injection functions for:
- Extracting and validating JWT tokens
- Turning a valid token into the request's Principal
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from driveflow.core.access.types import Principal
from driveflow.core.auth.backend import decode_token
from driveflow.core.auth.schemas import TokenData
from driveflow.core.errors import UnauthenticatedError, UnauthorizedError


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal | None:
    """Get the principal if a bearer token is present, None otherwise.

    Absence of a token is not an error here; authorization reports it as
    ``not_authenticated``. A token that is present but invalid is rejected.

    Raises:
        UnauthorizedError: If the token is invalid, expired, or not an access token
    """
    if not credentials:
        return None

    token_data = decode_token(credentials.credentials)
    if not token_data:
        raise UnauthorizedError(
            "Invalid or expired token",
            error_code="invalid_token",
        )

    if token_data.type != "access":
        raise UnauthorizedError(
            "Invalid token type",
            error_code="invalid_token_type",
        )

    return token_data.to_principal()


async def get_current_principal(
    principal: Annotated[Principal | None, Depends(get_optional_principal)],
) -> Principal:
    """Get the authenticated principal.

    Raises:
        UnauthenticatedError: If no bearer token was supplied
    """
    if principal is None:
        raise UnauthenticatedError()
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
OptionalPrincipal = Annotated[Principal | None, Depends(get_optional_principal)]

__all__ = [
    "CurrentPrincipal",
    "OptionalPrincipal",
    "TokenData",
    "bearer_scheme",
    "get_current_principal",
    "get_optional_principal",
]
