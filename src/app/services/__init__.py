from src.app.services.database_lifecycle_service import (
    CreationOutcome,
    DatabaseLifecycleService,
    DatabaseState,
)
from src.app.services.database_pool_service import (
    DatabasePoolService,
    PoolClaim,
    PoolSlotResult,
    ReleaseOutcome,
    SlotStatus,
)
from src.app.services.role_seeder import RoleSeeder, SeedResult
from src.app.services.tenant_bootstrap_service import TenantBootstrapService

__all__ = [
    "CreationOutcome",
    "DatabaseLifecycleService",
    "DatabasePoolService",
    "DatabaseState",
    "PoolClaim",
    "PoolSlotResult",
    "ReleaseOutcome",
    "RoleSeeder",
    "SeedResult",
    "SlotStatus",
    "TenantBootstrapService",
]
