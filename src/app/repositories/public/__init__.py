"""Central database repositories."""

from src.app.repositories.public.tenant import TenantRepository

__all__ = [
    "TenantRepository",
]
