"""Role and ownership based access control.

Provides:
- PermissionMatrix: static role -> action table
- PolicyEvaluator: role gate plus ownership scoping with audit on denial
- AccessRequirement: per-route role/action declarations

HTTP enforcement lives in ``driveflow.core.access.guard``.
"""

from driveflow.core.access.evaluator import PolicyEvaluator, enforce
from driveflow.core.access.matrix import (
    DEFAULT_PERMISSIONS,
    PermissionMatrix,
    default_matrix,
)
from driveflow.core.access.providers import OwnershipProvider
from driveflow.core.access.requirements import AccessRequirement, permissions, roles
from driveflow.core.access.types import (
    Decision,
    DenialCode,
    OrgRole,
    OwnershipContext,
    PermissionAction,
    PermissionCheck,
    Principal,
    ResourceDescriptor,
    ResourceType,
)


__all__ = [
    "DEFAULT_PERMISSIONS",
    "AccessRequirement",
    "Decision",
    "DenialCode",
    "OrgRole",
    "OwnershipContext",
    "OwnershipProvider",
    "PermissionAction",
    "PermissionCheck",
    "PermissionMatrix",
    "PolicyEvaluator",
    "Principal",
    "ResourceDescriptor",
    "ResourceType",
    "default_matrix",
    "enforce",
    "permissions",
    "roles",
]
