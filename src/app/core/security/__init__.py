"""Security utilities - password hashing and identifier validators.

Re-exports all security-related functions for convenience.
"""

from src.app.core.security.crypto import hash_password, verify_password
from src.app.core.security.validators import (
    POOL_DATABASE_PREFIX,
    TENANT_DATABASE_PREFIX,
    parse_numeric_suffix,
    validate_database_name,
)

__all__ = [
    # Crypto
    "hash_password",
    "verify_password",
    # Validators
    "POOL_DATABASE_PREFIX",
    "TENANT_DATABASE_PREFIX",
    "parse_numeric_suffix",
    "validate_database_name",
]
