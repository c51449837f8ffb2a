"""Database utilities - engines, migrations, tenant database administration."""

from src.app.core.db.admin import DatabaseAdmin, PostgresDatabaseAdmin
from src.app.core.db.engine import (
    dispose_database_engine,
    dispose_sync_engine,
    get_database_engine,
    get_lock_engine,
    get_sync_engine,
    get_sync_url,
)
from src.app.core.db.migrations import run_migrations_sync

__all__ = [
    # Engines
    "dispose_database_engine",
    "dispose_sync_engine",
    "get_database_engine",
    "get_lock_engine",
    "get_sync_engine",
    "get_sync_url",
    # Administration
    "DatabaseAdmin",
    "PostgresDatabaseAdmin",
    # Migrations
    "run_migrations_sync",
]
