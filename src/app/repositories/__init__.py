"""Repository layer - data access abstraction."""

from src.app.repositories.base import BaseRepository
from src.app.repositories.public import TenantRepository

__all__ = [
    # Base
    "BaseRepository",
    # Central database
    "TenantRepository",
]
