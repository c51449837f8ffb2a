"""Database pool activities."""

import asyncio
from dataclasses import dataclass

from temporalio import activity

from src.app.core.db import PostgresDatabaseAdmin
from src.app.repositories import TenantRepository
from src.app.services.database_pool_service import (
    DatabasePoolService,
    PoolSlotResult,
    ReleaseOutcome,
    SlotStatus,
)


@dataclass
class ReplenishPoolOutput:
    created: int
    skipped: int
    failed: int
    available: int
    errors: list[str]

    @classmethod
    def from_results(cls, results: list[PoolSlotResult], available: int) -> "ReplenishPoolOutput":
        return cls(
            created=sum(1 for r in results if r.status is SlotStatus.CREATED),
            skipped=sum(1 for r in results if r.status is SlotStatus.SKIPPED),
            failed=sum(1 for r in results if r.status is SlotStatus.FAILED),
            available=available,
            errors=[f"{r.name}: {r.error}" for r in results if r.status is SlotStatus.FAILED],
        )


@dataclass
class ReleaseDatabaseInput:
    database_name: str


def _pool_service() -> DatabasePoolService:
    admin = PostgresDatabaseAdmin()
    return DatabasePoolService(admin, TenantRepository())


def _sync_replenish_pool() -> ReplenishPoolOutput:
    pool = _pool_service()
    results = pool.replenish()
    return ReplenishPoolOutput.from_results(results, pool.count_available())


@activity.defn
async def replenish_database_pool() -> ReplenishPoolOutput:
    """
    Top the database pool up to its minimum size.

    Idempotency: replenish() computes the shortfall from the live pool every
    time, so a retry after a partial run only builds what is still missing.
    Half-built entries live under the staging prefix and are dropped on
    failure, never counted as available.

    Returns:
        ReplenishPoolOutput with per-status counts and the resulting pool size
    """
    activity.logger.info("Replenishing database pool")
    result = await asyncio.to_thread(_sync_replenish_pool)
    activity.logger.info(
        f"Pool replenished: {result.created} created, {result.failed} failed, "
        f"{result.available} available"
    )
    return result


def _sync_release_database(database_name: str) -> str:
    return _pool_service().release(database_name).value


@activity.defn
async def release_tenant_database(input: ReleaseDatabaseInput) -> str:
    """
    Return a tenant's database to the pool (or drop it when the pool is full).

    Idempotency: a database that no longer exists, or already carries the pool
    prefix, is reported as "ignored".

    Returns:
        The ReleaseOutcome value: "returned", "dropped" or "ignored"
    """
    activity.logger.info(f"Releasing database {input.database_name}")
    outcome = await asyncio.to_thread(_sync_release_database, input.database_name)
    if outcome == ReleaseOutcome.IGNORED:
        activity.logger.info(f"Database {input.database_name} already released")
    return outcome
