"""
Temporal Activities - Fine-grained, idempotent operations.

Activities should be:
1. Idempotent - Safe to retry
2. Fine-grained - Do one thing well
3. Side-effect aware - External calls go here, not in workflows
"""

from src.app.temporal.activities.pool import (
    ReleaseDatabaseInput,
    ReplenishPoolOutput,
    release_tenant_database,
    replenish_database_pool,
)
from src.app.temporal.activities.provisioning import (
    MarkProvisioningFailedInput,
    ProvisionTenantOutput,
    mark_provisioning_failed,
    provision_tenant,
)
from src.app.temporal.activities.tenant import (
    DeleteTenantInput,
    DeleteTenantOutput,
    GetTenantInput,
    GetTenantOutput,
    delete_tenant_record,
    get_tenant_info,
)

__all__ = [
    # Dataclasses
    "DeleteTenantInput",
    "DeleteTenantOutput",
    "GetTenantInput",
    "GetTenantOutput",
    "MarkProvisioningFailedInput",
    "ProvisionTenantOutput",
    "ReleaseDatabaseInput",
    "ReplenishPoolOutput",
    # Activities
    "delete_tenant_record",
    "get_tenant_info",
    "mark_provisioning_failed",
    "provision_tenant",
    "release_tenant_database",
    "replenish_database_pool",
]
