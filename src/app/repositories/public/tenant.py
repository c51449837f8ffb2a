"""Repository for Tenant entity."""

from sqlalchemy import delete
from sqlmodel import col, select

from src.app.models.base import utc_now
from src.app.models.public import Tenant, TenantStatus
from src.app.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for Tenant entity in the central database."""

    model = Tenant

    def get(self, tenant_id: int) -> Tenant | None:
        """Find a tenant by id."""
        return self.get_by_id(tenant_id)

    def update_status(self, tenant_id: int, status: TenantStatus | str) -> bool:
        """Set tenant status. Returns False if the tenant does not exist.

        Setting a field to a value is naturally idempotent, so retries are safe.
        """
        # Validate status is a valid enum value
        try:
            value = TenantStatus(status).value
        except ValueError as e:
            raise ValueError(f"Invalid tenant status: {status}") from e

        with self.session() as session:
            tenant = session.get(Tenant, tenant_id)
            if tenant is None:
                return False
            tenant.status = value
            tenant.updated_at = utc_now()
            session.commit()
            return True

    def assign_database(self, tenant_id: int, database_name: str) -> bool:
        """Record the database allocated to a tenant."""
        with self.session() as session:
            tenant = session.get(Tenant, tenant_id)
            if tenant is None:
                return False
            tenant.database_name = database_name
            tenant.updated_at = utc_now()
            session.commit()
            return True

    def clear_database(self, tenant_id: int) -> bool:
        """Forget the database allocated to a tenant (after it was released)."""
        with self.session() as session:
            tenant = session.get(Tenant, tenant_id)
            if tenant is None:
                return False
            tenant.database_name = None
            tenant.updated_at = utc_now()
            session.commit()
            return True

    def referenced_databases(self, names: list[str]) -> set[str]:
        """Subset of names that some tenant row points at."""
        if not names:
            return set()
        with self.session() as session:
            rows = session.exec(
                select(Tenant.database_name).where(col(Tenant.database_name).in_(names))
            )
            return {name for name in rows if name is not None}

    def list_by_status(self, status: TenantStatus) -> list[Tenant]:
        """List tenants in a given provisioning status (for retry tooling)."""
        with self.session() as session:
            return list(session.exec(select(Tenant).where(Tenant.status == status.value)))

    def delete(self, tenant_id: int) -> bool:
        """Delete a tenant row. Returns False if it was already gone."""
        with self.session() as session:
            result = session.execute(delete(Tenant).where(col(Tenant.id) == tenant_id))
            session.commit()
            return bool(result.rowcount)
