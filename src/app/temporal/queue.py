"""TaskQueue backed by Temporal.

Every provisioning attempt is its own workflow execution. A retry is a new
execution started with start_delay, so no worker sleeps through the backoff
and the delay survives worker restarts.
"""

from datetime import timedelta

from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError

from src.app.core.config import Settings, get_settings
from src.app.core.logging import get_logger
from src.app.provisioning.models import PROVISION_TENANT_TASK, ProvisioningTask
from src.app.temporal.routing import QueueKind, route_for_tenant

logger = get_logger(__name__)

# Referenced by name: the workflow module imports the activities that build this queue
PROVISIONING_WORKFLOW = "TenantProvisioningWorkflow"


def provisioning_workflow_id(tenant_id: int, attempt: int) -> str:
    """Deterministic id: a duplicate enqueue of the same attempt is rejected by Temporal."""
    return f"tenant-provision-{tenant_id}-{attempt}"


class TemporalTaskQueue:
    """Start one workflow execution per queued task."""

    def __init__(self, client: Client, settings: Settings | None = None):
        self.client = client
        self.settings = settings or get_settings()

    async def enqueue(
        self,
        task_type: str,
        payload: ProvisioningTask,
        delay: timedelta | None = None,
    ) -> None:
        if task_type != PROVISION_TENANT_TASK:
            raise ValueError(f"Unknown task type: {task_type}")

        route = route_for_tenant(
            tenant_id=payload.tenant_id,
            namespace=self.settings.temporal_namespace,
            prefix=self.settings.temporal_queue_prefix,
            shards=self.settings.temporal_queue_shards,
            kind=QueueKind.TENANT,
        )
        workflow_id = provisioning_workflow_id(payload.tenant_id, payload.attempt)

        try:
            await self.client.start_workflow(
                PROVISIONING_WORKFLOW,
                args=[payload, self.settings.provisioning_attempt_timeout_seconds],
                id=workflow_id,
                task_queue=route.task_queue,
                start_delay=delay,
                priority=route.priority,
            )
        except WorkflowAlreadyStartedError:
            logger.info("Provisioning attempt already queued", workflow_id=workflow_id)
            return

        logger.info(
            "Provisioning attempt queued",
            workflow_id=workflow_id,
            task_queue=route.task_queue,
            delay_seconds=delay.total_seconds() if delay else 0,
        )
