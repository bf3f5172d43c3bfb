"""Error handling module with RFC 7807 Problem Details."""

from driveflow.core.errors.exceptions import (
    AppException,
    ForbiddenError,
    InvalidRoleError,
    MalformedRequestBodyError,
    MissingOrganizationContextError,
    OwnershipLookupError,
    PolicyDeniedError,
    UnauthenticatedError,
    UnauthorizedError,
)
from driveflow.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "InvalidRoleError",
    "MalformedRequestBodyError",
    "MissingOrganizationContextError",
    "OwnershipLookupError",
    "PolicyDeniedError",
    "ProblemDetail",
    "UnauthenticatedError",
    "UnauthorizedError",
    "register_exception_handlers",
]
