"""Integration test fixtures for a real PostgreSQL cluster.

These fixtures require external resources (PostgreSQL reachable through
DATABASE_URL, with rights to create databases). Every database a test creates
under the tenant, pool or staging prefix is dropped afterwards.
"""

import random
from collections.abc import Callable, Iterator

import pytest

from src.app.core.config import get_settings
from src.app.core.db import PostgresDatabaseAdmin, dispose_sync_engine, run_migrations_sync
from src.app.models.public import Tenant
from src.app.repositories import TenantRepository
from src.app.services.database_lifecycle_service import DatabaseLifecycleService
from src.app.services.database_pool_service import DatabasePoolService
from tests.factories import TenantFactory


def _managed_databases(admin: PostgresDatabaseAdmin) -> set[str]:
    settings = get_settings()
    return {
        name
        for prefix in (
            settings.tenant_database_prefix,
            settings.pool_database_prefix,
            settings.staging_database_prefix,
        )
        for name in admin.list_databases(prefix)
    }


@pytest.fixture(scope="session")
def _central_migrations() -> None:
    run_migrations_sync(None)


@pytest.fixture
def pg_admin(_central_migrations: None) -> Iterator[PostgresDatabaseAdmin]:
    """PostgresDatabaseAdmin that drops whatever databases the test leaves behind."""
    admin = PostgresDatabaseAdmin()
    before = _managed_databases(admin)
    yield admin
    for name in _managed_databases(admin) - before:
        admin.drop_database(name)
    dispose_sync_engine()


@pytest.fixture
def tenant_repo(pg_admin: PostgresDatabaseAdmin) -> TenantRepository:
    return TenantRepository()


@pytest.fixture
def make_tenant(tenant_repo: TenantRepository) -> Iterator[Callable[..., int]]:
    """Insert tenant rows; they are deleted after the test."""
    created: list[int] = []

    def _make(**kwargs) -> int:
        with tenant_repo.session() as session:
            tenant: Tenant = TenantFactory.unsaved(**kwargs)
            session.add(tenant)
            session.commit()
            session.refresh(tenant)
        assert tenant.id is not None
        created.append(tenant.id)
        return tenant.id

    yield _make
    for tenant_id in created:
        tenant_repo.delete(tenant_id)


@pytest.fixture
def pg_lifecycle(pg_admin: PostgresDatabaseAdmin) -> DatabaseLifecycleService:
    return DatabaseLifecycleService(pg_admin)


@pytest.fixture
def pg_pool(pg_admin: PostgresDatabaseAdmin, tenant_repo: TenantRepository) -> DatabasePoolService:
    return DatabasePoolService(pg_admin, tenant_repo)


@pytest.fixture
def unused_tenant_id() -> int:
    """An id far above anything a real registry hands out, for database names only."""
    return random.randint(10_000_000, 99_999_999)

