"""Tests for TenantRepository against an in-memory SQLite registry."""

from collections.abc import Iterator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from src.app.models.public import Tenant, TenantStatus
from src.app.repositories import TenantRepository
from tests.factories import TenantFactory

pytestmark = pytest.mark.unit


@pytest.fixture
def registry_engine() -> Iterator[Engine]:
    # SQLite has no "public" schema; map it away
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    ).execution_options(schema_translate_map={"public": None})
    Tenant.metadata.create_all(engine, tables=[Tenant.__table__])  # type: ignore[attr-defined]
    yield engine
    engine.dispose()


@pytest.fixture
def repo(registry_engine: Engine) -> TenantRepository:
    return TenantRepository(registry_engine)


def add_tenant(engine: Engine, **kwargs) -> int:
    with Session(engine) as session:
        tenant = TenantFactory.unsaved(**kwargs)
        session.add(tenant)
        session.commit()
        session.refresh(tenant)
        assert tenant.id is not None
        return tenant.id


class TestStatus:
    def test_new_tenant_is_pending(self, repo: TenantRepository, registry_engine: Engine):
        tenant_id = add_tenant(registry_engine)

        tenant = repo.get(tenant_id)

        assert tenant is not None
        assert tenant.status_enum is TenantStatus.PENDING
        assert tenant.is_terminal is False

    def test_update_status(self, repo: TenantRepository, registry_engine: Engine):
        tenant_id = add_tenant(registry_engine)

        assert repo.update_status(tenant_id, TenantStatus.PROCESSING) is True
        assert repo.update_status(tenant_id, "ativa") is True

        tenant = repo.get(tenant_id)
        assert tenant.status == "ativa"
        assert tenant.is_terminal is True

    def test_update_status_missing_tenant(self, repo: TenantRepository):
        assert repo.update_status(999, TenantStatus.FAILED) is False

    def test_update_status_rejects_unknown_value(
        self, repo: TenantRepository, registry_engine: Engine
    ):
        tenant_id = add_tenant(registry_engine)

        with pytest.raises(ValueError, match="Invalid tenant status"):
            repo.update_status(tenant_id, "active")

    def test_list_by_status(self, repo: TenantRepository, registry_engine: Engine):
        failed = add_tenant(registry_engine, tax_id="1", status="failed")
        add_tenant(registry_engine, tax_id="2")

        assert [t.id for t in repo.list_by_status(TenantStatus.FAILED)] == [failed]


class TestDatabaseAssignment:
    def test_assign_and_clear(self, repo: TenantRepository, registry_engine: Engine):
        tenant_id = add_tenant(registry_engine)

        assert repo.assign_database(tenant_id, "tenant_1") is True
        assert repo.get(tenant_id).database_name == "tenant_1"

        assert repo.clear_database(tenant_id) is True
        assert repo.get(tenant_id).database_name is None

    def test_assign_missing_tenant(self, repo: TenantRepository):
        assert repo.assign_database(999, "tenant_999") is False
        assert repo.clear_database(999) is False

    def test_referenced_databases(self, repo: TenantRepository, registry_engine: Engine):
        add_tenant(registry_engine, tax_id="1", database_name="tenant_1")
        add_tenant(registry_engine, tax_id="2", database_name="tenant_2")

        assert repo.referenced_databases(["tenant_1", "pool_3"]) == {"tenant_1"}
        assert repo.referenced_databases([]) == set()


class TestDelete:
    def test_delete_is_idempotent(self, repo: TenantRepository, registry_engine: Engine):
        tenant_id = add_tenant(registry_engine)

        assert repo.delete(tenant_id) is True
        assert repo.delete(tenant_id) is False
        assert repo.get(tenant_id) is None
