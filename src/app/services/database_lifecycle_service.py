"""Tenant database lifecycle - idempotent create and migrate.

Creation never depends on exception handling for the reuse case: the target
database is inspected first and classified as missing, empty or populated.
Only a concurrent creator sneaking in between the check and CREATE DATABASE
takes the recovery branch, which re-runs the same inspection.
"""

from enum import StrEnum

from src.app.core.config import get_settings
from src.app.core.db import DatabaseAdmin
from src.app.core.exceptions import DatabaseAlreadyExistsError, DatabaseConflictError
from src.app.core.logging import get_logger
from src.app.core.security import validate_database_name

logger = get_logger(__name__)


class DatabaseState(StrEnum):
    MISSING = "missing"
    EMPTY = "empty"
    POPULATED = "populated"


class CreationOutcome(StrEnum):
    CREATED = "created"
    REUSED = "reused"
    CONFLICT = "conflict"


class DatabaseLifecycleService:
    """Create and migrate the physical database of one tenant."""

    def __init__(self, admin: DatabaseAdmin, tenant_prefix: str | None = None):
        self.admin = admin
        self.tenant_prefix = tenant_prefix or get_settings().tenant_database_prefix

    def database_name_for(self, tenant_id: int) -> str:
        """Database name owned by a tenant, e.g. 'tenant_42'."""
        if tenant_id < 1:
            raise ValueError(f"Invalid tenant id: {tenant_id}")
        return f"{self.tenant_prefix}{tenant_id}"

    def inspect(self, database_name: str) -> DatabaseState:
        """Classify an existing (or absent) database by its table count."""
        if not self.admin.database_exists(database_name):
            return DatabaseState.MISSING
        if self.admin.list_tables(database_name):
            return DatabaseState.POPULATED
        return DatabaseState.EMPTY

    def prepare_database(self, database_name: str) -> CreationOutcome:
        """Ensure an empty database exists under database_name.

        Returns:
            CREATED if it was created now, REUSED if an empty one already
            existed, CONFLICT if one exists and holds tables (never dropped).
        """
        validate_database_name(database_name, prefixes=(self.tenant_prefix,))

        state = self.inspect(database_name)
        if state is DatabaseState.MISSING:
            try:
                self.admin.create_database(database_name)
                return CreationOutcome.CREATED
            except DatabaseAlreadyExistsError:
                logger.warning(
                    "Database appeared during creation, re-checking",
                    database=database_name,
                )
                state = self.inspect(database_name)

        if state is DatabaseState.EMPTY:
            logger.info("Database exists and is empty, reusing", database=database_name)
            return CreationOutcome.REUSED

        if state is DatabaseState.MISSING:
            # Reported as existing by CREATE DATABASE but gone again: a concurrent
            # drop. Let the caller retry the whole attempt.
            raise RuntimeError(f"Database '{database_name}' vanished during creation")

        logger.warning("Database exists and contains tables", database=database_name)
        return CreationOutcome.CONFLICT

    def create_database(self, tenant_id: int) -> CreationOutcome:
        """Create the tenant's database, reusing an empty leftover.

        Idempotent: a second call after a successful first one returns REUSED
        as long as the database is still empty.

        Raises:
            DatabaseConflictError: If the database exists and holds tables.
        """
        database_name = self.database_name_for(tenant_id)
        outcome = self.prepare_database(database_name)
        if outcome is CreationOutcome.CONFLICT:
            raise DatabaseConflictError(
                database_name, table_count=len(self.admin.list_tables(database_name))
            )
        logger.info(
            "Tenant database ready",
            tenant_id=tenant_id,
            database=database_name,
            outcome=outcome.value,
        )
        return outcome

    def run_migrations(self, database_name: str) -> None:
        """Apply the tenant migration set. Safe to re-run (tracked per database)."""
        logger.info("Running tenant migrations", database=database_name)
        self.admin.run_migrations(database_name)
        logger.info("Tenant migrations complete", database=database_name)
