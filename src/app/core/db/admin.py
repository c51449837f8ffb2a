"""PostgreSQL administration boundary for tenant databases.

Everything that issues DDL against the cluster lives here: creating, renaming
and dropping databases, listing them by prefix, inspecting and truncating
their tables, running the tenant migration set, and opening sessions bound to
one tenant database. Callers always name the target database explicitly;
there is no ambient "current tenant".
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from psycopg2.errors import DuplicateDatabase  # type: ignore[import-untyped]
from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import ProgrammingError
from sqlmodel import Session

from src.app.core.config import get_settings
from src.app.core.db.engine import (
    dispose_database_engine,
    get_database_engine,
    get_lock_engine,
    get_sync_engine,
)
from src.app.core.db.migrations import run_migrations_sync
from src.app.core.exceptions import DatabaseAlreadyExistsError
from src.app.core.logging import get_logger
from src.app.core.security import validate_database_name

logger = get_logger(__name__)

MIGRATION_VERSION_TABLE = "alembic_version"


class DatabaseAdmin(Protocol):
    """Operations the provisioning services need from the database cluster."""

    def list_databases(self, prefix: str) -> list[str]: ...

    def database_exists(self, name: str) -> bool: ...

    def list_tables(self, name: str) -> list[str]: ...

    def create_database(self, name: str) -> None: ...

    def rename_database(self, old_name: str, new_name: str) -> None: ...

    def drop_database(self, name: str) -> None: ...

    def truncate_tables(self, name: str) -> int: ...

    def run_migrations(self, name: str) -> None: ...

    def tenant_session(self, name: str) -> Iterator[Session]: ...

    def pool_lock(self) -> Iterator[None]: ...


def _quote_ident(conn: Connection, name: str) -> str:
    """Quote an identifier server-side for DDL that cannot take bind parameters."""
    return conn.execute(text("SELECT quote_ident(:name)"), {"name": name}).scalar_one()


class PostgresDatabaseAdmin:
    """DatabaseAdmin backed by a PostgreSQL cluster."""

    def __init__(
        self,
        engine: Engine | None = None,
        lock_key: int | None = None,
        lock_engine: Engine | None = None,
    ):
        self._engine = engine
        self._lock_engine = lock_engine
        settings = get_settings()
        self._lock_key = lock_key if lock_key is not None else settings.pool_lock_key
        self._prefixes = (
            settings.tenant_database_prefix,
            settings.pool_database_prefix,
            settings.staging_database_prefix,
        )

    def _validate(self, name: str) -> str:
        return validate_database_name(name, prefixes=self._prefixes)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = get_sync_engine()
        return self._engine

    @property
    def lock_engine(self) -> Engine:
        if self._lock_engine is None:
            self._lock_engine = get_lock_engine()
        return self._lock_engine

    @contextmanager
    def _autocommit(self) -> Iterator[Connection]:
        # CREATE/ALTER/DROP DATABASE cannot run inside a transaction block
        with self.engine.connect() as conn:
            yield conn.execution_options(isolation_level="AUTOCOMMIT")

    def list_databases(self, prefix: str) -> list[str]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                text("SELECT datname FROM pg_database WHERE datname LIKE :pattern"),
                {"pattern": prefix.replace("_", r"\_") + "%"},
            )
            return [row[0] for row in rows]

    def database_exists(self, name: str) -> bool:
        with self.engine.connect() as conn:
            return bool(
                conn.execute(
                    text("SELECT EXISTS(SELECT 1 FROM pg_database WHERE datname = :name)"),
                    {"name": name},
                ).scalar()
            )

    def list_tables(self, name: str) -> list[str]:
        self._validate(name)
        with get_database_engine(name).connect() as conn:
            rows = conn.execute(
                text(
                    "SELECT tablename FROM pg_tables "
                    "WHERE schemaname = 'public' ORDER BY tablename"
                )
            )
            return [row[0] for row in rows]

    def create_database(self, name: str) -> None:
        self._validate(name)
        with self._autocommit() as conn:
            quoted = _quote_ident(conn, name)
            try:
                conn.execute(text(f"CREATE DATABASE {quoted}"))
            except ProgrammingError as e:
                if isinstance(e.orig, DuplicateDatabase):
                    raise DatabaseAlreadyExistsError(name) from e
                raise
        logger.info("Database created", database=name)

    def rename_database(self, old_name: str, new_name: str) -> None:
        self._validate(old_name)
        self._validate(new_name)
        dispose_database_engine(old_name)
        with self._autocommit() as conn:
            # RENAME fails while other sessions are connected to the database
            conn.execute(
                text(
                    "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
                    "WHERE datname = :name AND pid <> pg_backend_pid()"
                ),
                {"name": old_name},
            )
            quoted_old = _quote_ident(conn, old_name)
            quoted_new = _quote_ident(conn, new_name)
            conn.execute(text(f"ALTER DATABASE {quoted_old} RENAME TO {quoted_new}"))
        logger.info("Database renamed", database=old_name, new_name=new_name)

    def drop_database(self, name: str) -> None:
        self._validate(name)
        dispose_database_engine(name)
        with self._autocommit() as conn:
            quoted = _quote_ident(conn, name)
            conn.execute(text(f"DROP DATABASE IF EXISTS {quoted} WITH (FORCE)"))
        logger.info("Database dropped", database=name)

    def truncate_tables(self, name: str) -> int:
        """Empty every table except the migration history. Returns tables truncated."""
        tables = [t for t in self.list_tables(name) if t != MIGRATION_VERSION_TABLE]
        if not tables:
            return 0
        with get_database_engine(name).begin() as conn:
            quoted = ", ".join(_quote_ident(conn, table) for table in tables)
            conn.execute(text(f"TRUNCATE TABLE {quoted} RESTART IDENTITY CASCADE"))
        return len(tables)

    def run_migrations(self, name: str) -> None:
        self._validate(name)
        run_migrations_sync(name)

    @contextmanager
    def tenant_session(self, name: str) -> Iterator[Session]:
        """Session bound to a single tenant database. Rolls back on error."""
        self._validate(name)
        with Session(get_database_engine(name)) as session:
            try:
                yield session
            except Exception:
                session.rollback()
                raise

    @contextmanager
    def pool_lock(self) -> Iterator[None]:
        """Hold the cluster-wide pool advisory lock for the duration of the block.

        The lock lives on its own unpooled connection; statements inside the
        block check out central connections as usual.
        """
        with self.lock_engine.connect() as conn:
            conn = conn.execution_options(isolation_level="AUTOCOMMIT")
            conn.execute(text("SELECT pg_advisory_lock(:key)"), {"key": self._lock_key})
            try:
                yield
            finally:
                conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": self._lock_key})
