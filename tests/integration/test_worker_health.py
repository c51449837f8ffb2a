"""Tests for the provisioning worker's health server."""

import asyncio
import contextlib
import socket
from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import AsyncClient

from src.app.temporal.worker import run_health_server, worker_task_queues

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


def get_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.listen(1)
        return s.getsockname()[1]


@pytest.fixture
async def health_server() -> AsyncGenerator[Callable[[str], AsyncClient]]:
    """Start the health server for a workload; yields an HTTP client factory."""
    tasks: list[asyncio.Task] = []

    def _start(workload: str) -> AsyncClient:
        port = get_free_port()
        tasks.append(
            asyncio.create_task(run_health_server(workload, worker_task_queues(workload), port))
        )
        return AsyncClient(base_url=f"http://localhost:{port}")

    yield _start
    for task in tasks:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


async def test_tenant_workload_reports_shard_queues(health_server):
    client = health_server("tenant")
    await asyncio.sleep(0.5)

    async with client:
        response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "provisioning-worker"
    assert data["workload"] == "tenant"
    assert data["task_queues"] == ["provisioning.tenant.00"]
    assert data["workflows"] == ["TenantProvisioningWorkflow", "TenantDeletionWorkflow"]


async def test_jobs_workload_reports_replenishment(health_server):
    client = health_server("jobs")
    await asyncio.sleep(0.5)

    async with client:
        health = (await client.get("/health")).json()
        ready = await client.get("/ready")

    assert health["task_queues"] == ["provisioning.jobs.00"]
    assert health["workflows"] == ["PoolReplenishmentWorkflow"]
    assert ready.status_code == 200
    assert ready.json() == {"status": "ready"}
