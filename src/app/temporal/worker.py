"""
Temporal Worker.

Run with:
    uv run python -m src.app.temporal.worker                  # Development mode (all workloads)
    uv run python -m src.app.temporal.worker --workload tenant # Tenant workloads only
    uv run python -m src.app.temporal.worker --workload jobs   # Jobs workloads only
"""

import argparse
import asyncio
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.worker import Worker

from src.app.core.config import get_settings
from src.app.core.db import dispose_sync_engine
from src.app.core.events import close_event_bus
from src.app.core.logging import get_logger, setup_logging
from src.app.temporal.activities import (
    delete_tenant_record,
    get_tenant_info,
    mark_provisioning_failed,
    provision_tenant,
    release_tenant_database,
    replenish_database_pool,
)
from src.app.temporal.routing import QueueKind, route_for_system_job, task_queue_name
from src.app.temporal.workflows import (
    POOL_REPLENISHMENT_WORKFLOW_ID,
    PoolReplenishmentWorkflow,
    TenantDeletionWorkflow,
    TenantProvisioningWorkflow,
)

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001

TENANT_WORKFLOWS: list[type] = [TenantProvisioningWorkflow, TenantDeletionWorkflow]
JOBS_WORKFLOWS: list[type] = [PoolReplenishmentWorkflow]


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments for worker workload selection."""
    parser = argparse.ArgumentParser(description="Temporal worker")
    parser.add_argument(
        "--workload",
        choices=["tenant", "jobs", "all"],
        default="all",
        help="Worker workload type (default: all for development mode)",
    )
    return parser.parse_args()


def tenant_task_queues() -> list[str]:
    """One tenant queue per shard."""
    settings = get_settings()
    return [
        task_queue_name(settings.temporal_queue_prefix, QueueKind.TENANT, shard)
        for shard in range(settings.temporal_queue_shards)
    ]


def jobs_task_queue() -> str:
    settings = get_settings()
    return route_for_system_job(
        namespace=settings.temporal_namespace, prefix=settings.temporal_queue_prefix
    ).task_queue


def worker_task_queues(workload: str) -> list[str]:
    """Task queues polled by a workload (tenant, jobs or all)."""
    task_queues = []
    if workload in ["tenant", "all"]:
        task_queues.extend(tenant_task_queues())
    if workload in ["jobs", "all"]:
        task_queues.append(jobs_task_queue())
    return task_queues


def worker_workflows(workload: str) -> list[str]:
    """Names of the workflows hosted by a workload."""
    workflows = []
    if workload in ["tenant", "all"]:
        workflows.extend(TENANT_WORKFLOWS)
    if workload in ["jobs", "all"]:
        workflows.extend(JOBS_WORKFLOWS)
    return [workflow.__name__ for workflow in workflows]


async def create_worker(
    client: Client,
    task_queue: str,
    workflows: Sequence[type],
    activities: Sequence[object],  # type: ignore[type-arg]
    *,
    max_concurrent_activities: int = 100,
    max_concurrent_workflow_tasks: int = 100,
) -> Worker:
    """Create a worker with tuned settings.

    Args:
        client: Temporal client
        task_queue: Task queue name
        workflows: List of workflow classes
        activities: List of activity functions
        max_concurrent_activities: Max concurrent activity executions
        max_concurrent_workflow_tasks: Max concurrent workflow task executions

    Returns:
        Configured Worker instance
    """
    return Worker(
        client,
        task_queue=task_queue,
        workflows=list(workflows),
        activities=list(activities),  # type: ignore[arg-type]
        max_concurrent_activities=max_concurrent_activities,
        max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
    )


async def run_tenant_workers(client: Client) -> None:
    """Run workers for tenant queues (provisioning and deletion).

    Creates one worker per shard. Tuned for lower concurrency: every
    provisioning attempt issues DDL and runs migrations against its own
    database.
    """
    workers = []

    tenant_activities = [
        delete_tenant_record,
        get_tenant_info,
        mark_provisioning_failed,
        provision_tenant,
        release_tenant_database,
    ]

    for tq in tenant_task_queues():
        worker = await create_worker(
            client,
            tq,
            workflows=TENANT_WORKFLOWS,
            activities=tenant_activities,
            max_concurrent_activities=20,
            max_concurrent_workflow_tasks=20,
        )
        workers.append(worker)
        logger.info("Created tenant worker", task_queue=tq)

    logger.info("Starting tenant workers", count=len(workers))
    await asyncio.gather(*(w.run() for w in workers))


async def schedule_pool_replenishment(client: Client, task_queue: str) -> None:
    """Register the pool replenishment cron workflow if a schedule is configured.

    The workflow id is fixed, so restarting workers does not stack schedules.
    """
    settings = get_settings()
    if not settings.pool_replenish_schedule:
        logger.info("Pool replenishment schedule not configured")
        return

    try:
        await client.start_workflow(
            PoolReplenishmentWorkflow.run,
            id=POOL_REPLENISHMENT_WORKFLOW_ID,
            task_queue=task_queue,
            cron_schedule=settings.pool_replenish_schedule,
        )
        logger.info(
            "Pool replenishment scheduled",
            cron=settings.pool_replenish_schedule,
            task_queue=task_queue,
        )
    except WorkflowAlreadyStartedError:
        logger.info("Pool replenishment already scheduled")


async def run_jobs_workers(client: Client) -> None:
    """Run workers for job queues (system-wide background tasks).

    Handles database pool replenishment, one slot at a time.
    """
    tq = jobs_task_queue()
    worker = await create_worker(
        client,
        tq,
        workflows=JOBS_WORKFLOWS,
        activities=[replenish_database_pool],
        max_concurrent_activities=1,
        max_concurrent_workflow_tasks=10,
    )
    await schedule_pool_replenishment(client, tq)
    logger.info("Starting jobs worker", task_queue=tq)
    await worker.run()


async def run_health_server(
    workload: str,
    task_queues: list[str],
    port: int = WORKER_HEALTH_PORT,
) -> None:
    """Run a lightweight health server for K8s probes.

    Args:
        workload: Workload type (tenant, jobs, all)
        task_queues: List of task queues being polled
        port: Port to listen on
    """
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str | list[str]]:
        return {
            "status": "healthy",
            "service": "provisioning-worker",
            "workload": workload,
            "task_queues": task_queues,
            "workflows": worker_workflows(workload),
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    config = uvicorn.Config(
        health_app,
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info("Starting health server", port=port, workload=workload)
    await server.serve()


async def main() -> None:
    """Main entry point for the Temporal worker.

    Supports three modes:
    - tenant: Polls tenant queues only (production deployment)
    - jobs: Polls jobs queue only (production deployment)
    - all: Polls all queues in one process (development mode)
    """
    args = parse_args()
    settings = get_settings()
    setup_logging(settings.debug)

    client = await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace,
    )

    task_queues = worker_task_queues(args.workload)

    logger.info("Starting worker", workload=args.workload, task_queues=task_queues)

    try:
        # Start health server alongside worker(s)
        health_task = asyncio.create_task(run_health_server(args.workload, task_queues))

        if args.workload == "tenant":
            await run_tenant_workers(client)
        elif args.workload == "jobs":
            await run_jobs_workers(client)
        elif args.workload == "all":
            # Development mode: run all workers in one process
            await asyncio.gather(
                run_tenant_workers(client),
                run_jobs_workers(client),
            )

        # Wait for health server to finish (should never happen)
        await health_task
    finally:
        await close_event_bus()
        dispose_sync_engine()


if __name__ == "__main__":
    asyncio.run(main())
