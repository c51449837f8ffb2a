"""Temporal Client - For starting workflows from the CLI and other callers."""

from temporalio.client import Client

from src.app.core.config import get_settings

_client: Client | None = None


async def get_temporal_client() -> Client:
    """Get or create Temporal client."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = await Client.connect(
            settings.temporal_host,
            namespace=settings.temporal_namespace,
        )
    return _client


async def close_temporal_client() -> None:
    """Forget the cached client. Call during shutdown.

    Client connections close when garbage collected; dropping the reference is
    all that is needed.
    """
    global _client
    _client = None
