"""Tests for the operator CLI."""

from typing import Any

import pytest

from src.app import cli
from src.app.models.public import TenantStatus
from src.app.services.database_pool_service import DatabasePoolService
from tests.fakes import FakeDatabaseAdmin, FakeTenantStore

pytestmark = pytest.mark.unit


def run_pool(pool: DatabasePoolService, *argv: str) -> int:
    return cli.run_pool_command(cli.parse_args(["pool", *argv]), pool)


class TestParseArgs:
    def test_pool_provision(self):
        args = cli.parse_args(["pool", "provision", "5"])
        assert (args.group, args.command, args.count) == ("pool", "provision", 5)

    def test_tenant_retry(self):
        args = cli.parse_args(["tenant", "retry", "42"])
        assert (args.group, args.command, args.tenant_id) == ("tenant", "retry", 42)

    def test_tenant_list_statuses(self):
        args = cli.parse_args(["tenant", "list", "--status", "failed", "--status", "pending"])
        assert args.status == [TenantStatus.FAILED, TenantStatus.PENDING]

    def test_tenant_list_rejects_unknown_status(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["tenant", "list", "--status", "archived"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["pool"])


class TestPoolCommands:
    def test_status(self, admin: FakeDatabaseAdmin, pool: DatabasePoolService, capsys):
        admin.add_pool_database("pool_1")
        admin.add_pool_database("pool_2")

        assert run_pool(pool, "status") == 0
        assert capsys.readouterr().out.strip() == "available: 2 (min 2, max 5)"

    def test_provision(self, admin: FakeDatabaseAdmin, pool: DatabasePoolService, capsys):
        assert run_pool(pool, "provision", "2") == 0

        out = capsys.readouterr().out
        assert "pool_1: created" in out
        assert "2/2 created" in out
        assert sorted(admin.list_databases("pool_")) == ["pool_1", "pool_2"]

    def test_provision_reports_failed_slot(
        self, admin: FakeDatabaseAdmin, pool: DatabasePoolService, capsys
    ):
        admin.fail_create.add("staging_2")

        assert run_pool(pool, "provision", "2") == 1

        out = capsys.readouterr().out
        assert "pool_2: failed (could not create staging_2)" in out
        assert "1/2 created" in out

    def test_provision_requires_positive_count(self, pool: DatabasePoolService, capsys):
        assert run_pool(pool, "provision", "0") == 2
        assert "positive" in capsys.readouterr().err

    def test_replenish_when_full(self, admin: FakeDatabaseAdmin, pool: DatabasePoolService, capsys):
        admin.add_pool_database("pool_1")
        admin.add_pool_database("pool_2")

        assert run_pool(pool, "replenish") == 0
        assert "already at minimum" in capsys.readouterr().out

    def test_replenish_tops_up(self, admin: FakeDatabaseAdmin, pool: DatabasePoolService, capsys):
        admin.add_pool_database("pool_1")

        assert run_pool(pool, "replenish") == 0
        assert "1/1 created" in capsys.readouterr().out
        assert pool.count_available() == 2

    def test_release(self, admin: FakeDatabaseAdmin, pool: DatabasePoolService, capsys):
        admin.databases["tenant_42"] = ["companies", "users"]

        assert run_pool(pool, "release", "tenant_42") == 0
        assert capsys.readouterr().out.strip() == "tenant_42: returned"
        assert "pool_1" in admin.databases


class TestListTenants:
    def test_defaults_to_incomplete_tenants(self, tenants: FakeTenantStore, capsys):
        tenants.add(1, status=TenantStatus.FAILED, name="Acme")
        tenants.add(2, status=TenantStatus.ACTIVE, name="Globex")
        tenants.add(3, status=TenantStatus.PROCESSING, name="Initech", database_name="tenant_3")

        assert cli.list_tenants(cli.INCOMPLETE_STATUSES, tenants) == 0  # type: ignore[arg-type]

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "1\tfailed\t-\tAcme",
            "3\tprocessing\ttenant_3\tInitech",
            "2 tenant(s)",
        ]

    def test_single_status(self, tenants: FakeTenantStore, capsys):
        tenants.add(1, status=TenantStatus.FAILED)
        tenants.add(2, status=TenantStatus.PENDING)

        cli.list_tenants([TenantStatus.PENDING], tenants)  # type: ignore[arg-type]

        out = capsys.readouterr().out
        assert out.startswith("2\tpending")
        assert "1 tenant(s)" in out


class RecordingClient:
    def __init__(self):
        self.calls: list[dict[str, Any]] = []

    async def start_workflow(self, workflow: str, *args: Any, **kwargs: Any) -> Any:
        self.calls.append({"workflow": workflow, "args": args, **kwargs})
        return type("Handle", (), {"id": kwargs["id"]})()


@pytest.fixture
def temporal_client(monkeypatch: pytest.MonkeyPatch) -> RecordingClient:
    client = RecordingClient()

    async def _get_client() -> RecordingClient:
        return client

    monkeypatch.setattr(cli, "get_temporal_client", _get_client)
    return client


class TestTenantCommands:
    @pytest.mark.asyncio
    async def test_retry_failed_tenant(
        self, tenants: FakeTenantStore, temporal_client: RecordingClient
    ):
        tenants.add(42, status=TenantStatus.FAILED)

        assert await cli.retry_tenant(42, tenants) == 0  # type: ignore[arg-type]

        assert tenants.get(42).status == "pending"
        call = temporal_client.calls[0]
        assert call["workflow"] == "TenantProvisioningWorkflow"
        assert call["id"] == "tenant-provision-42-1"

    @pytest.mark.asyncio
    async def test_retry_restores_failed_when_enqueue_fails(
        self, tenants: FakeTenantStore, monkeypatch: pytest.MonkeyPatch
    ):
        tenants.add(42, status=TenantStatus.FAILED)

        async def _unreachable() -> None:
            raise ConnectionError("temporal unreachable")

        monkeypatch.setattr(cli, "get_temporal_client", _unreachable)

        with pytest.raises(ConnectionError):
            await cli.retry_tenant(42, tenants)  # type: ignore[arg-type]

        assert tenants.get(42).status == "failed"
        assert tenants.status_history[42] == ["pending", "failed"]

    @pytest.mark.asyncio
    async def test_retry_refuses_active_tenant(
        self, tenants: FakeTenantStore, temporal_client: RecordingClient, capsys
    ):
        tenants.add(42, status=TenantStatus.ACTIVE)

        assert await cli.retry_tenant(42, tenants) == 1  # type: ignore[arg-type]

        assert "only failed tenants" in capsys.readouterr().err
        assert temporal_client.calls == []

    @pytest.mark.asyncio
    async def test_retry_missing_tenant(
        self, tenants: FakeTenantStore, temporal_client: RecordingClient
    ):
        assert await cli.retry_tenant(404, tenants) == 1  # type: ignore[arg-type]
        assert temporal_client.calls == []

    @pytest.mark.asyncio
    async def test_delete_starts_workflow(self, temporal_client: RecordingClient, capsys):
        assert await cli.delete_tenant(42) == 0

        call = temporal_client.calls[0]
        assert call["workflow"] == "TenantDeletionWorkflow"
        assert call["args"] == (42,)
        assert call["id"] == "tenant-delete-42"
        assert "tenant-delete-42" in capsys.readouterr().out
