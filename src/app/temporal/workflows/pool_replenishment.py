"""
Pool Replenishment Workflow.

Keep enough migrated, empty databases in the pool for new tenants to claim.

Designed to be run on a schedule (Temporal cron, POOL_REPLENISH_SCHEDULE) on
the jobs queue.
"""

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from src.app.temporal.activities import ReplenishPoolOutput, replenish_database_pool
    from src.app.temporal.workflows._steps.common import long_activity_opts

POOL_REPLENISHMENT_WORKFLOW_ID = "database-pool-replenishment"


@workflow.defn
class PoolReplenishmentWorkflow:
    """Top the database pool up to POOL_MIN_SIZE available entries."""

    @workflow.run
    async def run(self) -> ReplenishPoolOutput:
        result: ReplenishPoolOutput = await workflow.execute_activity(
            replenish_database_pool,
            **long_activity_opts(),  # type: ignore[arg-type]
        )
        if result.failed:
            workflow.logger.warning(
                f"Pool replenishment: {result.failed} slot(s) failed: {result.errors}"
            )
        workflow.logger.info(
            f"Pool replenishment complete: {result.created} created, "
            f"{result.available} available"
        )
        return result
