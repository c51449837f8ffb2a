"""Root test fixtures shared across all test types.

Provisioning collaborators are replaced by the in-memory fakes in
tests/fakes.py; no PostgreSQL, Temporal server or Redis is needed for unit
tests.
"""

import os

# Set APP_ENV to testing before any app imports
os.environ.setdefault("APP_ENV", "testing")
# Disable SSL for local test database (PostgreSQL without SSL support)
os.environ.setdefault("DATABASE_SSL_MODE", "disable")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator, Iterator
from datetime import timedelta

import pytest
import structlog
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis
from sqlmodel import Session
from structlog.testing import CapturingLogger

from src.app.core.config import get_settings
from src.app.core.events import RedisEventBus
from src.app.core.logging import clear_log_context
from src.app.provisioning.orchestrator import ProvisioningOrchestrator
from src.app.provisioning.retry import ProvisioningRetryPolicy
from src.app.services.database_lifecycle_service import DatabaseLifecycleService
from src.app.services.database_pool_service import DatabasePoolService
from tests.fakes import (
    FIXED_NOW,
    FakeDatabaseAdmin,
    FakeTenantStore,
    InMemoryTaskQueue,
    RecordingEventBus,
    tenant_engine,
)

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


# --- Logging Fixtures ---


@pytest.fixture
def capturing_logger() -> Iterator[CapturingLogger]:
    """Route structlog output to a CapturingLogger for assertions."""
    cap_logger = CapturingLogger()
    old_config = structlog.get_config()

    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=lambda *args, **kwargs: cap_logger,
        cache_logger_on_first_use=False,
    )

    clear_log_context()
    yield cap_logger
    clear_log_context()
    structlog.configure(**old_config)


# --- Provisioning Fixtures ---


@pytest.fixture
def admin() -> FakeDatabaseAdmin:
    return FakeDatabaseAdmin()


@pytest.fixture
def tenants() -> FakeTenantStore:
    return FakeTenantStore()


@pytest.fixture
def queue() -> InMemoryTaskQueue:
    return InMemoryTaskQueue()


@pytest.fixture
def events() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def lifecycle(admin: FakeDatabaseAdmin) -> DatabaseLifecycleService:
    return DatabaseLifecycleService(admin, tenant_prefix="tenant_")


@pytest.fixture
def pool(admin: FakeDatabaseAdmin, tenants: FakeTenantStore) -> DatabasePoolService:
    return DatabasePoolService(
        admin,
        tenants,
        pool_prefix="pool_",
        staging_prefix="staging_",
        tenant_prefix="tenant_",
        min_size=2,
        max_size=5,
    )


@pytest.fixture
def policy() -> ProvisioningRetryPolicy:
    return ProvisioningRetryPolicy(
        max_attempts=3,
        backoff=(timedelta(seconds=60), timedelta(seconds=300), timedelta(seconds=900)),
        attempt_timeout=timedelta(minutes=10),
    )


@pytest.fixture
def orchestrator(
    admin: FakeDatabaseAdmin,
    tenants: FakeTenantStore,
    lifecycle: DatabaseLifecycleService,
    pool: DatabasePoolService,
    queue: InMemoryTaskQueue,
    events: RecordingEventBus,
    policy: ProvisioningRetryPolicy,
) -> ProvisioningOrchestrator:
    return ProvisioningOrchestrator(
        tenants=tenants,
        admin=admin,
        lifecycle=lifecycle,
        pool=pool,
        queue=queue,
        events=events,
        policy=policy,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def tenant_session() -> Iterator[Session]:
    """Session on a fresh SQLite database carrying the tenant tables."""
    engine = tenant_engine()
    with Session(engine) as session:
        yield session
    engine.dispose()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """Provides a fakeredis client for testing.

    Returns an in-memory Redis implementation that behaves like
    a real Redis server but doesn't require external dependencies.
    """
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def event_bus(fake_redis: Redis) -> RedisEventBus:
    """RedisEventBus publishing into the fakeredis client."""
    return RedisEventBus(stream="events:tenant", client=fake_redis)


@pytest.fixture
async def unreachable_event_bus() -> AsyncGenerator[RedisEventBus]:
    """RedisEventBus pointed at a port nothing listens on."""
    bus = RedisEventBus(stream="events:tenant", redis_url="redis://localhost:1/0")
    yield bus
    await bus.close()
