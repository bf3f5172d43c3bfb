"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.

The access-control taxonomy maps onto HTTP status codes as follows:

- MalformedRequestBodyError -> 400
- UnauthenticatedError -> 401
- PolicyDeniedError, MissingOrganizationContextError -> 403
- OwnershipLookupError -> 503 (retryable)
- InvalidRoleError -> 500 (data integrity problem upstream)
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("Invalid access token")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class UnauthenticatedError(UnauthorizedError):
    """Raised when an authorization check runs without a principal.

    Always fatal to the request and never retried.
    """

    message = "Not authenticated"
    error_code = "not_authenticated"


class ForbiddenError(AppException):
    """Raised when user lacks permission to access a resource.

    Example:
        raise ForbiddenError(
            "Insufficient permissions",
            details={"required_permission": "users:delete"}
        )
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class MalformedRequestBodyError(AppException):
    """Raised when a request body needed for authorization is not valid JSON."""

    message = "Request body is not valid JSON"
    error_code = "malformed_request_body"
    status_code = 400


class PolicyDeniedError(ForbiddenError):
    """Raised when a role or ownership check denies an action.

    The message is the evaluator's reason string, unchanged, so API
    consumers can assert on it. Retrying the same request will not help.
    """

    message = "Insufficient permissions"
    error_code = "policy_denied"


class MissingOrganizationContextError(PolicyDeniedError):
    """Raised when a scoped role acts without an organization."""

    message = "Organization context is required for scoped permissions"
    error_code = "organization_context_required"


class OwnershipLookupError(AppException):
    """Raised when the ownership provider fails (transport or storage).

    Distinct from a policy denial: callers may retry or alert.
    """

    message = "Error validating scoped permissions"
    error_code = "ownership_lookup_failed"
    status_code = 503


class InvalidRoleError(AppException):
    """Raised when a principal carries a role outside the closed enumeration."""

    message = "Principal has an invalid role"
    error_code = "invalid_role"
    status_code = 500

    def __init__(self, role: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["role"] = role
        super().__init__(
            message=kwargs.pop("message", None) or f"Invalid role '{role}'",
            details=details,
            **kwargs,
        )
        self.role = role
