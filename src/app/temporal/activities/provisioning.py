"""Tenant provisioning activities."""

import asyncio
from dataclasses import dataclass

from temporalio import activity

from src.app.core.db import PostgresDatabaseAdmin
from src.app.core.events import get_event_bus
from src.app.models.public import TenantStatus
from src.app.provisioning.models import OutcomeStatus, ProvisioningOutcome, ProvisioningTask
from src.app.provisioning.orchestrator import ProvisioningOrchestrator
from src.app.repositories import TenantRepository
from src.app.services.database_lifecycle_service import DatabaseLifecycleService
from src.app.services.database_pool_service import DatabasePoolService
from src.app.temporal.queue import TemporalTaskQueue


@dataclass
class ProvisionTenantOutput:
    tenant_id: int
    attempt: int
    status: str  # "completed", "retry_scheduled", "failed", "skipped"
    database_name: str | None = None
    company_id: int | None = None
    admin_user_id: int | None = None
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: ProvisioningOutcome) -> "ProvisionTenantOutput":
        result = outcome.result
        return cls(
            tenant_id=outcome.tenant_id,
            attempt=outcome.attempt,
            status=outcome.status.value,
            database_name=result.database_name if result else None,
            company_id=result.company_id if result else None,
            admin_user_id=result.admin_user_id if result else None,
            error=outcome.error,
        )


@dataclass
class MarkProvisioningFailedInput:
    tenant_id: int
    error: str | None = None


def build_orchestrator(queue: TemporalTaskQueue) -> ProvisioningOrchestrator:
    """Wire the orchestrator against PostgreSQL, Redis and the given queue."""
    admin = PostgresDatabaseAdmin()
    tenants = TenantRepository()
    return ProvisioningOrchestrator(
        tenants=tenants,
        admin=admin,
        lifecycle=DatabaseLifecycleService(admin),
        pool=DatabasePoolService(admin, tenants),
        queue=queue,
        events=get_event_bus(),
    )


@activity.defn
async def provision_tenant(task: ProvisioningTask) -> ProvisionTenantOutput:
    """
    Run one provisioning attempt for a tenant.

    Idempotency: every step inside the attempt is idempotent (database reuse,
    select-then-insert seeding, guarded company/admin creation), so a rerun
    after a crash converges on the same result.

    Retries are NOT done by Temporal's activity retry policy: the orchestrator
    applies the provisioning backoff itself by starting a new, delayed
    workflow execution for the next attempt.
    """
    activity.logger.info(
        f"Provisioning tenant {task.tenant_id}, attempt {task.attempt}"
    )
    orchestrator = build_orchestrator(TemporalTaskQueue(activity.client()))
    outcome = await orchestrator.handle(task)
    activity.logger.info(
        f"Provisioning attempt for tenant {task.tenant_id} finished: {outcome.status.value}"
    )
    if outcome.status is OutcomeStatus.FAILED:
        activity.logger.error(f"Tenant {task.tenant_id} failed: {outcome.error}")
    return ProvisionTenantOutput.from_outcome(outcome)


def _sync_mark_failed(tenant_id: int) -> bool:
    """Set failed unless the tenant already reached a terminal state."""
    tenants = TenantRepository()
    tenant = tenants.get(tenant_id)
    if tenant is None:
        return False
    if tenant.is_terminal:
        return True
    return tenants.update_status(tenant_id, TenantStatus.FAILED)


@activity.defn
async def mark_provisioning_failed(input: MarkProvisioningFailedInput) -> bool:
    """
    Mark a tenant failed after its provisioning attempt crashed or timed out.

    Idempotency: "set to value" update guarded by the terminal check, so an
    active tenant is never downgraded and repeated calls are no-ops.

    Returns:
        True if the tenant is now in a terminal state, False if it is gone
    """
    activity.logger.warning(f"Marking tenant {input.tenant_id} failed: {input.error}")
    return await asyncio.to_thread(_sync_mark_failed, input.tenant_id)
