"""Collaborator contracts consumed by the provisioning orchestrator."""

from datetime import timedelta
from typing import Protocol

from src.app.models.public import Tenant, TenantStatus
from src.app.provisioning.models import ProvisioningTask, TenantProvisioned


class TaskQueue(Protocol):
    """Delayed task dispatch. Implementations must not block for the delay."""

    async def enqueue(
        self,
        task_type: str,
        payload: ProvisioningTask,
        delay: timedelta | None = None,
    ) -> None: ...


class EventBus(Protocol):
    """Publishes domain events to downstream consumers."""

    async def publish(self, event: TenantProvisioned) -> None: ...


class TenantStore(Protocol):
    """Central-store operations the pipeline relies on (see TenantRepository)."""

    def get(self, tenant_id: int) -> Tenant | None: ...

    def update_status(self, tenant_id: int, status: TenantStatus | str) -> bool: ...

    def assign_database(self, tenant_id: int, database_name: str) -> bool: ...

    def clear_database(self, tenant_id: int) -> bool: ...

    def referenced_databases(self, names: list[str]) -> set[str]: ...
