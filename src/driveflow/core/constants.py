"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_IDENTIFIER_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_SLUG_LENGTH = 63
MAX_ROLE_NAME_LENGTH = 32
MAX_AUDIT_EVENT_LENGTH = 50
MAX_RESOURCE_TYPE_LENGTH = 100
MAX_IPV6_LENGTH = 45
MAX_REQUEST_ID_LENGTH = 64

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Audit queue
DEFAULT_AUDIT_QUEUE_SIZE = 1000
AUDIT_SHUTDOWN_TIMEOUT_SECONDS = 5.0
