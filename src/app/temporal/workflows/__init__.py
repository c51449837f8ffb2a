"""Temporal Workflows - Re-exports for worker registration."""

from src.app.temporal.workflows.pool_replenishment import (
    POOL_REPLENISHMENT_WORKFLOW_ID,
    PoolReplenishmentWorkflow,
)
from src.app.temporal.workflows.tenant_deletion import TenantDeletionWorkflow
from src.app.temporal.workflows.tenant_provisioning import TenantProvisioningWorkflow

__all__ = [
    "POOL_REPLENISHMENT_WORKFLOW_ID",
    "PoolReplenishmentWorkflow",
    "TenantDeletionWorkflow",
    "TenantProvisioningWorkflow",
]
