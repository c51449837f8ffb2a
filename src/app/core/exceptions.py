"""Provisioning error taxonomy.

Errors deriving from PermanentProvisioningError are never retried: the
orchestrator marks the tenant failed as soon as one is raised. Every other
exception is treated as transient and retried with backoff.
"""


class ProvisioningError(Exception):
    """Base class for provisioning failures."""


class PermanentProvisioningError(ProvisioningError):
    """A failure that retrying cannot fix (manual remediation required)."""


class DatabaseConflictError(PermanentProvisioningError):
    """Target database already exists and holds tables."""

    def __init__(self, database_name: str, table_count: int | None = None):
        self.database_name = database_name
        self.table_count = table_count
        detail = f" ({table_count} tables)" if table_count is not None else ""
        super().__init__(
            f"Database '{database_name}' already exists and contains data{detail}. "
            "Drop it manually or release it to the pool before retrying."
        )


class TenantNotFoundError(PermanentProvisioningError):
    """Tenant row is missing from the central store."""

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant {tenant_id} not found")


class DatabaseAlreadyExistsError(ProvisioningError):
    """CREATE DATABASE failed because the name is taken."""

    def __init__(self, database_name: str):
        self.database_name = database_name
        super().__init__(f"Database '{database_name}' already exists")


class AttemptTimeoutError(ProvisioningError):
    """A provisioning attempt exceeded its time budget."""

    def __init__(self, tenant_id: int, timeout_seconds: float):
        self.tenant_id = tenant_id
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Provisioning attempt for tenant {tenant_id} exceeded {timeout_seconds:.0f}s"
        )


def is_permanent(exc: BaseException) -> bool:
    """True when exc must not be retried."""
    return isinstance(exc, PermanentProvisioningError)
