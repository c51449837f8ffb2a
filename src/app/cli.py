"""
Operator CLI for the database pool and tenant provisioning.

Run with:
    uv run python -m src.app.cli pool status
    uv run python -m src.app.cli pool provision 5
    uv run python -m src.app.cli pool replenish
    uv run python -m src.app.cli pool release tenant_42
    uv run python -m src.app.cli tenant list --status failed
    uv run python -m src.app.cli tenant retry 42
    uv run python -m src.app.cli tenant delete 42
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from src.app.core.config import get_settings
from src.app.core.db import PostgresDatabaseAdmin
from src.app.core.logging import get_logger, setup_logging
from src.app.models.public import TenantStatus
from src.app.provisioning.tasks import enqueue_provisioning, operator_retry_task
from src.app.repositories import TenantRepository
from src.app.services.database_pool_service import (
    DatabasePoolService,
    PoolSlotResult,
    SlotStatus,
    created_count,
)
from src.app.temporal.client import close_temporal_client, get_temporal_client
from src.app.temporal.queue import TemporalTaskQueue
from src.app.temporal.routing import route_for_tenant

logger = get_logger(__name__)

# Tenants a registration started but provisioning has not finished
INCOMPLETE_STATUSES = (TenantStatus.PENDING, TenantStatus.PROCESSING, TenantStatus.FAILED)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tenant provisioning operations")
    groups = parser.add_subparsers(dest="group", required=True)

    pool = groups.add_parser("pool", help="Database pool maintenance")
    pool_commands = pool.add_subparsers(dest="command", required=True)
    pool_commands.add_parser("status", help="Show pool size and free entries")
    provision = pool_commands.add_parser("provision", help="Create N new pool databases")
    provision.add_argument("count", type=int)
    pool_commands.add_parser("replenish", help="Top the pool up to POOL_MIN_SIZE")
    release = pool_commands.add_parser("release", help="Return a database to the pool")
    release.add_argument("database_name")

    tenant = groups.add_parser("tenant", help="Tenant provisioning operations")
    tenant_commands = tenant.add_subparsers(dest="command", required=True)
    listing = tenant_commands.add_parser("list", help="List tenants by provisioning status")
    listing.add_argument(
        "--status",
        action="append",
        type=TenantStatus,
        choices=[status.value for status in TenantStatus],
        help="Status to list, repeatable (default: pending, processing and failed)",
    )
    retry = tenant_commands.add_parser("retry", help="Re-enqueue a failed tenant")
    retry.add_argument("tenant_id", type=int)
    delete = tenant_commands.add_parser("delete", help="Start the tenant deletion workflow")
    delete.add_argument("tenant_id", type=int)

    return parser.parse_args(argv)


def _print_results(results: list[PoolSlotResult]) -> int:
    for result in results:
        line = f"{result.name}: {result.status}"
        if result.error:
            line += f" ({result.error})"
        print(line)
    print(f"{created_count(results)}/{len(results)} created")
    return 1 if any(r.status is SlotStatus.FAILED for r in results) else 0


def run_pool_command(args: argparse.Namespace, pool: DatabasePoolService) -> int:
    if args.command == "status":
        available = pool.count_available()
        print(f"available: {available} (min {pool.min_size}, max {pool.max_size})")
        return 0
    if args.command == "provision":
        if args.count < 1:
            print("count must be positive", file=sys.stderr)
            return 2
        return _print_results(pool.provision(args.count))
    if args.command == "replenish":
        results = pool.replenish()
        if not results:
            print("pool already at minimum size")
            return 0
        return _print_results(results)
    if args.command == "release":
        print(f"{args.database_name}: {pool.release(args.database_name)}")
        return 0
    raise ValueError(f"Unknown pool command: {args.command}")


def list_tenants(statuses: Sequence[TenantStatus], tenants: TenantRepository) -> int:
    found = [tenant for status in statuses for tenant in tenants.list_by_status(status)]
    for tenant in sorted(found, key=lambda t: t.id or 0):
        print(f"{tenant.id}\t{tenant.status}\t{tenant.database_name or '-'}\t{tenant.name}")
    print(f"{len(found)} tenant(s)")
    return 0


async def retry_tenant(tenant_id: int, tenants: TenantRepository) -> int:
    tenant = tenants.get(tenant_id)
    if tenant is None:
        print(f"tenant {tenant_id} not found", file=sys.stderr)
        return 1
    if tenant.status_enum is not TenantStatus.FAILED:
        print(f"tenant {tenant_id} is {tenant.status}, only failed tenants can be retried",
              file=sys.stderr)
        return 1

    # Pending before the workflow starts, or the attempt would skip a failed tenant
    tenants.update_status(tenant_id, TenantStatus.PENDING)
    try:
        queue = TemporalTaskQueue(await get_temporal_client())
        await enqueue_provisioning(queue, operator_retry_task(tenant))
    except Exception:
        tenants.update_status(tenant_id, TenantStatus.FAILED)
        logger.exception("Re-enqueue failed, tenant left failed", tenant_id=tenant_id)
        raise
    logger.info("Tenant re-enqueued by operator", tenant_id=tenant_id)
    print(f"tenant {tenant_id} re-enqueued")
    return 0


async def delete_tenant(tenant_id: int) -> int:
    settings = get_settings()
    client = await get_temporal_client()
    route = route_for_tenant(
        tenant_id=tenant_id,
        namespace=settings.temporal_namespace,
        prefix=settings.temporal_queue_prefix,
        shards=settings.temporal_queue_shards,
    )
    handle = await client.start_workflow(
        "TenantDeletionWorkflow",
        tenant_id,
        id=f"tenant-delete-{tenant_id}",
        task_queue=route.task_queue,
    )
    print(f"deletion started: {handle.id}")
    return 0


async def run_tenant_command(args: argparse.Namespace, tenants: TenantRepository) -> int:
    try:
        if args.command == "retry":
            return await retry_tenant(args.tenant_id, tenants)
        return await delete_tenant(args.tenant_id)
    finally:
        await close_temporal_client()


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.debug)

    tenants = TenantRepository()
    if args.group == "pool":
        return run_pool_command(args, DatabasePoolService(PostgresDatabaseAdmin(), tenants))
    if args.command == "list":
        return list_tenants(args.status or INCOMPLETE_STATUSES, tenants)
    return asyncio.run(run_tenant_command(args, tenants))


if __name__ == "__main__":
    sys.exit(main())
