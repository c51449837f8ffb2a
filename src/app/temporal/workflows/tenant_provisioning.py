"""
Tenant Provisioning Workflow.

One workflow execution per provisioning attempt. The single activity runs
the whole state machine (allocate or claim a database, migrate, seed roles,
create company and admin, activate); if it fails it schedules the next
attempt itself as a new, delayed execution of this workflow.

Failure handling: if the activity crashes or outlives its timeout the
orchestrator never got to decide, so the workflow marks the tenant failed
before failing itself.
"""

from temporalio import workflow
from temporalio.exceptions import ActivityError

with workflow.unsafe.imports_passed_through():
    from src.app.provisioning.models import ProvisioningTask
    from src.app.temporal.activities import (
        MarkProvisioningFailedInput,
        ProvisionTenantOutput,
        mark_provisioning_failed,
        provision_tenant,
    )
    from src.app.temporal.workflows._steps.common import (
        attempt_activity_opts,
        short_activity_opts,
    )

DEFAULT_ATTEMPT_TIMEOUT_SECONDS = 600


@workflow.defn
class TenantProvisioningWorkflow:
    """
    Run one provisioning attempt for a tenant.

    Workflow id: tenant-provision-<tenant_id>-<attempt>, so duplicate enqueues
    of the same attempt are rejected by Temporal.
    """

    @workflow.run
    async def run(
        self,
        task: ProvisioningTask,
        attempt_timeout_seconds: int = DEFAULT_ATTEMPT_TIMEOUT_SECONDS,
    ) -> ProvisionTenantOutput:
        """
        Run tenant provisioning attempt.

        Args:
            task: Tenant id, creation payload and attempt number
            attempt_timeout_seconds: Time budget of the attempt

        Returns:
            ProvisionTenantOutput describing the attempt's outcome
        """
        workflow.logger.info(
            f"Provisioning tenant {task.tenant_id}, attempt {task.attempt}"
        )
        try:
            result: ProvisionTenantOutput = await workflow.execute_activity(
                provision_tenant,
                task,
                **attempt_activity_opts(attempt_timeout_seconds),  # type: ignore[arg-type]
            )
        except ActivityError as e:
            error = str(e.cause or e)
            workflow.logger.error(f"Provisioning attempt crashed: {error}")
            await workflow.execute_activity(
                mark_provisioning_failed,
                MarkProvisioningFailedInput(tenant_id=task.tenant_id, error=error),
                **short_activity_opts(),  # type: ignore[arg-type]
            )
            raise

        workflow.logger.info(
            f"Provisioning attempt for tenant {task.tenant_id} finished: {result.status}"
        )
        return result
