"""Tenant registry activities."""

import asyncio
from dataclasses import dataclass

from temporalio import activity

from src.app.repositories import TenantRepository


@dataclass
class GetTenantInput:
    tenant_id: int


@dataclass
class GetTenantOutput:
    tenant_id: int
    found: bool
    status: str | None = None
    database_name: str | None = None


@dataclass
class DeleteTenantInput:
    tenant_id: int


@dataclass
class DeleteTenantOutput:
    success: bool
    already_deleted: bool


def _sync_get_tenant_info(tenant_id: int) -> GetTenantOutput:
    """Synchronous tenant info retrieval logic."""
    tenant = TenantRepository().get(tenant_id)
    if tenant is None:
        return GetTenantOutput(tenant_id=tenant_id, found=False)
    return GetTenantOutput(
        tenant_id=tenant_id,
        found=True,
        status=tenant.status,
        database_name=tenant.database_name,
    )


@activity.defn
async def get_tenant_info(input: GetTenantInput) -> GetTenantOutput:
    """
    Get registry information (status, database) for a tenant.

    Idempotency: Fully idempotent - read-only operation with no side effects.
    A missing tenant is reported with found=False rather than raised, so
    callers that treat "gone" as success (deletion) can do so.

    Args:
        input: GetTenantInput with tenant_id

    Returns:
        GetTenantOutput with status and database_name
    """
    activity.logger.info(f"Getting tenant info for: {input.tenant_id}")
    result = await asyncio.to_thread(_sync_get_tenant_info, input.tenant_id)
    activity.logger.info(
        f"Tenant info retrieved: {result.tenant_id}, found: {result.found}, "
        f"database: {result.database_name}"
    )
    return result


def _sync_delete_tenant(tenant_id: int) -> DeleteTenantOutput:
    """Synchronous delete with idempotency tracking."""
    deleted = TenantRepository().delete(tenant_id)
    return DeleteTenantOutput(success=True, already_deleted=not deleted)


@activity.defn
async def delete_tenant_record(input: DeleteTenantInput) -> DeleteTenantOutput:
    """
    Delete a tenant row from the central registry.

    Idempotency: DELETE by primary key. A retry after success finds nothing
    to delete and returns already_deleted=True.

    Args:
        input: DeleteTenantInput with tenant_id

    Returns:
        DeleteTenantOutput with:
        - success: True if operation succeeded (including idempotent retries)
        - already_deleted: True if the tenant row was already gone
    """
    activity.logger.info(f"Deleting tenant: {input.tenant_id}")
    result = await asyncio.to_thread(_sync_delete_tenant, input.tenant_id)

    if result.already_deleted:
        activity.logger.info(f"Tenant {input.tenant_id} already deleted (idempotent retry)")
    else:
        activity.logger.info(f"Tenant {input.tenant_id} deleted successfully")

    return result
