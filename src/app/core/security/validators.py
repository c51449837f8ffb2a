"""Database name validators.

Tenant and pool database names are interpolated into DDL (CREATE/ALTER/DROP
DATABASE cannot take bind parameters), so every name is checked against a
strict pattern before it reaches SQL.
"""

import re
from typing import Final

MAX_DATABASE_NAME_LENGTH: Final[int] = 63  # PostgreSQL identifier limit
TENANT_DATABASE_PREFIX: Final[str] = "tenant_"
POOL_DATABASE_PREFIX: Final[str] = "pool_"


def _suffix_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}([1-9][0-9]*)$")


def parse_numeric_suffix(name: str, prefix: str) -> int | None:
    """Return N for names shaped like '<prefix>N', else None.

    >>> parse_numeric_suffix("pool_12", "pool_")
    12
    >>> parse_numeric_suffix("pool_x", "pool_") is None
    True
    """
    match = _suffix_pattern(prefix).match(name)
    return int(match.group(1)) if match else None


def validate_database_name(
    name: str,
    prefixes: tuple[str, ...] = (TENANT_DATABASE_PREFIX, POOL_DATABASE_PREFIX),
) -> str:
    """Validate a tenant or pool database name.

    Names must:
    - Not exceed 63 characters (PostgreSQL limit)
    - Be one of the known prefixes followed by a positive integer

    Raises:
        ValueError: If the name is invalid

    Examples:
        >>> validate_database_name("tenant_42")
        'tenant_42'
        >>> validate_database_name("pool_3")
        'pool_3'
        >>> validate_database_name("postgres")  # Invalid - no known prefix
        Traceback (most recent call last):
        ...
        ValueError: Invalid database name: postgres. Expected one of tenant_<n>, pool_<n>.
    """
    if len(name) > MAX_DATABASE_NAME_LENGTH:
        raise ValueError(
            f"Database name exceeds PostgreSQL limit: {len(name)} > {MAX_DATABASE_NAME_LENGTH}"
        )

    if not any(parse_numeric_suffix(name, prefix) is not None for prefix in prefixes):
        expected = ", ".join(f"{prefix}<n>" for prefix in prefixes)
        raise ValueError(f"Invalid database name: {name}. Expected one of {expected}.")

    return name
