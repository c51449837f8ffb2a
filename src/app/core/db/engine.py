"""Database engine management.

One engine for the central database plus one lazily created engine per tenant
database. Provisioning runs in worker threads, so all engines are synchronous
(psycopg2).
"""

import threading
from typing import Any

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.pool import NullPool

from src.app.core.config import get_settings

_engine: Engine | None = None
_lock_engine: Engine | None = None
_database_engines: dict[str, Engine] = {}
_database_engines_lock = threading.Lock()


def _get_connect_args() -> dict[str, Any]:
    """Get connection arguments including SSL configuration."""
    settings = get_settings()
    return {"sslmode": settings.database_ssl_mode}


def get_sync_url(database: str | None = None) -> str:
    """Central database URL (sync driver), optionally pointed at another database."""
    settings = get_settings()
    # Convert async URL to sync (asyncpg -> psycopg2)
    url = make_url(settings.database_url.replace("+asyncpg", ""))
    if database is not None:
        url = url.set(database=database)
    return url.render_as_string(hide_password=False)


def get_sync_engine() -> Engine:
    """Get or create the central database engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            get_sync_url(),
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            connect_args=_get_connect_args(),
        )
    return _engine


def get_lock_engine() -> Engine:
    """Central database engine reserved for session-level advisory locks.

    NullPool: a connection blocked in pg_advisory_lock must not hold a slot in
    the shared pool that the lock holder needs for its own statements.
    """
    global _lock_engine
    if _lock_engine is None:
        _lock_engine = create_engine(
            get_sync_url(),
            poolclass=NullPool,
            connect_args=_get_connect_args(),
        )
    return _lock_engine


def get_database_engine(database: str) -> Engine:
    """Get or create the engine for one tenant (or pool) database.

    Tenant engines use NullPool: they are used in short bursts during
    provisioning, and pooled idle connections would block ALTER DATABASE ... RENAME.
    """
    with _database_engines_lock:
        engine = _database_engines.get(database)
        if engine is None:
            engine = create_engine(
                get_sync_url(database),
                poolclass=NullPool,
                connect_args=_get_connect_args(),
            )
            _database_engines[database] = engine
        return engine


def dispose_database_engine(database: str) -> None:
    """Drop the cached engine for a database (call before renaming or dropping it)."""
    with _database_engines_lock:
        engine = _database_engines.pop(database, None)
    if engine is not None:
        engine.dispose()


def dispose_sync_engine() -> None:
    """Dispose of all sync engines. Call on Temporal worker shutdown."""
    global _engine, _lock_engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
    if _lock_engine is not None:
        _lock_engine.dispose()
        _lock_engine = None
    with _database_engines_lock:
        engines = list(_database_engines.values())
        _database_engines.clear()
    for engine in engines:
        engine.dispose()
