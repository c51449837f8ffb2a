"""Pool of pre-created, pre-migrated tenant databases.

Strategy:
1. Keep a set of migrated, empty databases named pool_1, pool_2, ...
2. On provisioning, claim one by renaming it to tenant_<id>
3. When a tenant is deleted, scrub its database and rename it back to the pool

A pool-prefixed database is free unless some tenant row references it. Every
claim and every rename into the pool happens under the cluster-wide pool
lock, so two workers can never be handed the same entry. New entries are
built under a staging prefix and only renamed into the pool once fully
migrated, so acquire() never sees a half-built database.
"""

from dataclasses import dataclass
from enum import StrEnum

from src.app.core.config import get_settings
from src.app.core.db import DatabaseAdmin
from src.app.core.exceptions import TenantNotFoundError
from src.app.core.logging import get_logger
from src.app.core.security import parse_numeric_suffix
from src.app.provisioning.interfaces import TenantStore

logger = get_logger(__name__)


class SlotStatus(StrEnum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


class ReleaseOutcome(StrEnum):
    IGNORED = "ignored"
    RETURNED = "returned"
    DROPPED = "dropped"


@dataclass(frozen=True)
class PoolSlotResult:
    """Outcome of provisioning one pool slot."""

    name: str
    status: SlotStatus
    error: str | None = None


@dataclass(frozen=True)
class PoolClaim:
    """A pool entry handed to a tenant."""

    pool_name: str
    database_name: str


def created_count(results: list[PoolSlotResult]) -> int:
    """Number of slots that ended up in the pool."""
    return sum(1 for result in results if result.status is SlotStatus.CREATED)


class DatabasePoolService:
    """Allocate, return and replenish pooled tenant databases."""

    def __init__(
        self,
        admin: DatabaseAdmin,
        tenants: TenantStore,
        *,
        pool_prefix: str | None = None,
        staging_prefix: str | None = None,
        tenant_prefix: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        settings = get_settings()
        self.admin = admin
        self.tenants = tenants
        self.pool_prefix = pool_prefix or settings.pool_database_prefix
        self.staging_prefix = staging_prefix or settings.staging_database_prefix
        self.tenant_prefix = tenant_prefix or settings.tenant_database_prefix
        self.min_size = min_size if min_size is not None else settings.pool_min_size
        self.max_size = max_size if max_size is not None else settings.pool_max_size

    # --- Read side -----------------------------------------------------------

    def _names_with_prefix(self, prefix: str) -> list[str]:
        """Databases named '<prefix><n>', ordered by n."""
        numbered = [
            (suffix, name)
            for name in self.admin.list_databases(prefix)
            if (suffix := parse_numeric_suffix(name, prefix)) is not None
        ]
        return [name for _, name in sorted(numbered)]

    def _pool_databases(self) -> list[str]:
        return self._names_with_prefix(self.pool_prefix)

    def _available(self) -> list[str]:
        names = self._pool_databases()
        in_use = self.tenants.referenced_databases(names)
        return [name for name in names if name not in in_use]

    def acquire(self) -> str | None:
        """First free pool entry, or None when the pool is empty.

        Read-only: use claim() to take the entry.
        """
        available = self._available()
        if not available:
            logger.warning("Database pool empty", pool_size=len(self._pool_databases()))
            return None
        return available[0]

    def count_available(self) -> int:
        return len(self._available())

    def has_available(self) -> bool:
        return self.count_available() > 0

    def _used_slots(self) -> set[int]:
        """Suffixes held by pool or staging databases."""
        return {
            suffix
            for prefix in (self.pool_prefix, self.staging_prefix)
            for name in self.admin.list_databases(prefix)
            if (suffix := parse_numeric_suffix(name, prefix)) is not None
        }

    def _next_slot(self) -> int:
        """max(existing pool or staging suffix) + 1."""
        return max(self._used_slots(), default=0) + 1

    @staticmethod
    def _free_slots(used: set[int], count: int) -> list[int]:
        """The count lowest positive suffixes not in used."""
        free: list[int] = []
        slot = 1
        while len(free) < count:
            if slot not in used:
                free.append(slot)
            slot += 1
        return free

    # --- Write side ----------------------------------------------------------

    def claim(self, tenant_id: int) -> PoolClaim | None:
        """Atomically take a free pool entry for a tenant.

        Scan, rename and tenant assignment all run under the pool lock. After
        the rename the entry no longer carries the pool prefix, so it is
        invisible to every later acquire(). If the assignment fails the entry
        is renamed back, so a failed claim never strands a pool database
        under an unrecorded tenant name.

        Returns:
            The claim, or None if the pool had nothing available.

        Raises:
            TenantNotFoundError: The tenant row vanished before assignment.
        """
        database_name = f"{self.tenant_prefix}{tenant_id}"
        with self.admin.pool_lock():
            pool_name = self.acquire()
            if pool_name is None:
                return None
            self.admin.rename_database(pool_name, database_name)
            try:
                if not self.tenants.assign_database(tenant_id, database_name):
                    raise TenantNotFoundError(tenant_id)
            except Exception:
                logger.warning(
                    "Tenant assignment failed, returning database to pool",
                    tenant_id=tenant_id,
                    pool_database=pool_name,
                )
                self.admin.rename_database(database_name, pool_name)
                raise

        logger.info(
            "Database claimed from pool",
            tenant_id=tenant_id,
            pool_database=pool_name,
            database=database_name,
        )
        return PoolClaim(pool_name=pool_name, database_name=database_name)

    def release(self, database_name: str) -> ReleaseOutcome:
        """Return a tenant database to the pool.

        Pool-prefixed names are ignored. The database is scrubbed (every table
        but the migration history truncated) and renamed to the next pool slot.
        If that slot would exceed the maximum pool size the database is dropped
        instead, keeping the pool bounded.
        """
        if parse_numeric_suffix(database_name, self.pool_prefix) is not None:
            return ReleaseOutcome.IGNORED

        with self.admin.pool_lock():
            if not self.admin.database_exists(database_name):
                logger.info("Database already gone, nothing to release", database=database_name)
                return ReleaseOutcome.IGNORED

            slot = self._next_slot()
            if slot > self.max_size:
                logger.warning(
                    "Database pool full, dropping released database",
                    database=database_name,
                    max_pool_size=self.max_size,
                )
                self.admin.drop_database(database_name)
                return ReleaseOutcome.DROPPED

            pool_name = f"{self.pool_prefix}{slot}"
            truncated = self.admin.truncate_tables(database_name)
            self.admin.rename_database(database_name, pool_name)

        logger.info(
            "Database returned to pool",
            database=database_name,
            pool_database=pool_name,
            tables_truncated=truncated,
        )
        return ReleaseOutcome.RETURNED

    def _reserve_slots(self, count: int) -> tuple[list[int], list[PoolSlotResult]]:
        """Create staging databases for up to count new slots (under the pool lock).

        Capacity is the number of pool and staging databases against max_size,
        not the highest suffix: claims empty the low slots first, and those
        numbers are reused here.
        """
        reserved: list[int] = []
        unbuilt: list[PoolSlotResult] = []
        with self.admin.pool_lock():
            used = self._used_slots()
            capacity = max(self.max_size - len(used), 0)
            for index, slot in enumerate(self._free_slots(used, count)):
                pool_name = f"{self.pool_prefix}{slot}"
                if index >= capacity:
                    unbuilt.append(
                        PoolSlotResult(pool_name, SlotStatus.SKIPPED, "pool at capacity")
                    )
                    continue
                try:
                    self.admin.create_database(f"{self.staging_prefix}{slot}")
                except Exception as e:
                    logger.error("Failed to create pool database", database=pool_name, error=str(e))
                    unbuilt.append(PoolSlotResult(pool_name, SlotStatus.FAILED, str(e)))
                    continue
                reserved.append(slot)
        return reserved, unbuilt

    def _build_slot(self, slot: int) -> PoolSlotResult:
        staging_name = f"{self.staging_prefix}{slot}"
        pool_name = f"{self.pool_prefix}{slot}"
        try:
            self.admin.run_migrations(staging_name)
            with self.admin.pool_lock():
                self.admin.rename_database(staging_name, pool_name)
        except Exception as e:
            logger.error("Failed to build pool database", database=pool_name, error=str(e))
            try:
                self.admin.drop_database(staging_name)
            except Exception as drop_error:
                logger.error(
                    "Failed to drop staging database",
                    database=staging_name,
                    error=str(drop_error),
                )
            return PoolSlotResult(pool_name, SlotStatus.FAILED, str(e))

        logger.info("Pool database created and migrated", database=pool_name)
        return PoolSlotResult(pool_name, SlotStatus.CREATED)

    def provision(self, count: int) -> list[PoolSlotResult]:
        """Create and migrate count new pool entries, best-effort per slot.

        Returns one result per requested slot; failures do not stop the batch.
        """
        if count <= 0:
            return []

        reserved, unbuilt = self._reserve_slots(count)
        results = [self._build_slot(slot) for slot in reserved] + unbuilt
        logger.info(
            "Pool provisioning finished",
            requested=count,
            created=created_count(results),
            failed=sum(1 for r in results if r.status is SlotStatus.FAILED),
        )
        return results

    def replenish(self) -> list[PoolSlotResult]:
        """Top the pool up to its minimum number of available entries."""
        missing = self.min_size - self.count_available()
        if missing <= 0:
            logger.info("Database pool at or above minimum", min_size=self.min_size)
            return []
        return self.provision(missing)
