"""Authentication: bearer tokens in, Principal out."""

from driveflow.core.auth.backend import create_access_token, decode_token
from driveflow.core.auth.dependencies import (
    CurrentPrincipal,
    OptionalPrincipal,
    get_current_principal,
    get_optional_principal,
)
from driveflow.core.auth.middleware import PrincipalContextMiddleware, RequestIdMiddleware
from driveflow.core.auth.schemas import TokenData


__all__ = [
    # Dependencies
    "CurrentPrincipal",
    "OptionalPrincipal",
    # Middleware
    "PrincipalContextMiddleware",
    "RequestIdMiddleware",
    # Schemas
    "TokenData",
    # Token utilities
    "create_access_token",
    "decode_token",
    "get_current_principal",
    "get_optional_principal",
]
