"""
Tenant Deletion Workflow.

Delete a tenant: give its database back to the pool, then remove the record.

Steps:
1. Get tenant info (database_name)
2. Release the database to the pool (scrubbed and renamed, or dropped when full)
3. Delete the tenant record

Idempotent: Safe to retry - a missing tenant or an already released database
counts as done.
"""

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from src.app.temporal.activities import (
        DeleteTenantInput,
        GetTenantInput,
        GetTenantOutput,
        ReleaseDatabaseInput,
        delete_tenant_record,
        get_tenant_info,
        release_tenant_database,
    )
    from src.app.temporal.workflows._steps.common import (
        long_activity_opts,
        short_activity_opts,
    )


@workflow.defn
class TenantDeletionWorkflow:
    """
    Delete a tenant: release its database, then delete the record.

    The database goes first: if the workflow dies in between, the retry still
    finds the record and can finish the job.
    """

    @workflow.run
    async def run(self, tenant_id: int) -> dict[str, bool | int | str]:
        """
        Run tenant deletion workflow.

        Args:
            tenant_id: Id of the tenant to delete

        Returns:
            dict with deleted status, tenant_id and what happened to the database
        """
        tenant_info: GetTenantOutput = await workflow.execute_activity(
            get_tenant_info,
            GetTenantInput(tenant_id=tenant_id),
            **short_activity_opts(),  # type: ignore[arg-type]
        )
        if not tenant_info.found:
            workflow.logger.info(f"Tenant {tenant_id} not found, nothing to delete")
            return {"deleted": True, "tenant_id": tenant_id, "database": "none"}

        database = "none"
        if tenant_info.database_name:
            database = await workflow.execute_activity(
                release_tenant_database,
                ReleaseDatabaseInput(database_name=tenant_info.database_name),
                **long_activity_opts(),  # type: ignore[arg-type]
            )
            workflow.logger.info(f"Database {tenant_info.database_name} {database}")

        await workflow.execute_activity(
            delete_tenant_record,
            DeleteTenantInput(tenant_id=tenant_id),
            **short_activity_opts(),  # type: ignore[arg-type]
        )
        workflow.logger.info(f"Tenant {tenant_id} deleted")

        return {"deleted": True, "tenant_id": tenant_id, "database": database}
