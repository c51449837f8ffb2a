"""Domain event publishing over a Redis stream with graceful fallback.

Events are appended to a single stream (TENANT_EVENTS_STREAM, default
"events:tenant") as {"event", "payload", "occurred_at"} entries. When Redis
is not configured or unreachable the event is only logged, so provisioning
never depends on Redis being up.

The bus owns its Redis connection pool. Workers share one bus per process
(get_event_bus) and close it on shutdown (close_event_bus).
"""

from pydantic import TypeAdapter
from redis.asyncio import ConnectionPool, Redis

from src.app.core.config import get_settings
from src.app.core.logging import get_logger
from src.app.models.base import utc_now
from src.app.provisioning.models import TenantProvisioned

logger = get_logger(__name__)

_tenant_provisioned = TypeAdapter(TenantProvisioned)

_event_bus: "RedisEventBus | None" = None


def serialize_event(event: TenantProvisioned) -> dict[str, str]:
    """Stream entry fields for an event."""
    return {
        "event": event.event_name,
        "payload": _tenant_provisioned.dump_json(event).decode(),
        "occurred_at": utc_now().isoformat(),
    }


class RedisEventBus:
    """EventBus appending events to a Redis stream."""

    def __init__(
        self,
        stream: str | None = None,
        max_length: int | None = 10_000,
        *,
        redis_url: str | None = None,
        client: Redis | None = None,
    ):
        settings = get_settings()
        self.stream = stream or settings.tenant_events_stream
        self.max_length = max_length
        self.redis_url = redis_url or settings.redis_url
        self._pool: ConnectionPool | None = None
        self._redis: Redis | None = client
        # An injected client counts as already connected
        self._connection_attempted = client is not None

    async def _client(self) -> Redis | None:
        """Lazily connect. Returns None if Redis is unavailable.

        A failed connection is not retried until close() is called.
        """
        if self._redis is not None:
            return self._redis
        if self._connection_attempted:
            return None

        self._connection_attempted = True
        if not self.redis_url:
            logger.info("Redis not configured (REDIS_URL not set)")
            return None

        try:
            self._pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=get_settings().redis_pool_size,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)
            await self._redis.ping()  # type: ignore[misc]
            logger.info("Redis connected, publishing to stream", stream=self.stream)
            return self._redis
        except Exception as e:
            logger.warning("Redis connection failed, events will be logged only", error=str(e))
            await self._disconnect()
            return None

    async def _disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    async def close(self) -> None:
        """Release the connection; the next publish reconnects."""
        await self._disconnect()
        self._connection_attempted = False

    async def publish(self, event: TenantProvisioned) -> None:
        fields = serialize_event(event)
        redis = await self._client()
        if not redis:
            logger.info(
                "Redis unavailable, event logged only",
                event_name=fields["event"],
                payload=fields["payload"],
            )
            return

        message_id = await redis.xadd(
            self.stream, fields, maxlen=self.max_length, approximate=True
        )
        logger.info(
            "Event published",
            event_name=event.event_name,
            stream=self.stream,
            message_id=message_id,
        )


def get_event_bus() -> RedisEventBus:
    """Process-wide event bus, created on first use."""
    global _event_bus
    if _event_bus is None:
        _event_bus = RedisEventBus()
    return _event_bus


async def close_event_bus() -> None:
    """Close the process-wide bus. Call on worker shutdown."""
    global _event_bus
    if _event_bus is not None:
        await _event_bus.close()
        _event_bus = None
