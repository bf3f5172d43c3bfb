"""Core infrastructure: access control, auth, audit, errors, logging, database."""
