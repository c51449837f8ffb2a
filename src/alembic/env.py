import os
from logging.config import fileConfig

from sqlalchemy import create_engine, pool, text
from sqlmodel import SQLModel

from alembic import context
from src.app.core.config import get_settings
from src.app.core.db import get_sync_url
from src.app.core.security import validate_database_name

# Import all models for metadata
from src.app.models import Company, Permission, Role, RolePermission, Tenant, User  # noqa: F401
from src.app.models.tenant import TENANT_TABLES

config = context.config

if config.config_file_name is not None and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def get_url(database_name: str | None = None) -> str:
    """Sync URL of the central database, or of one tenant database."""
    settings = get_settings()
    if database_name:
        return get_sync_url(database_name)
    url = settings.database_migrations_url or settings.database_url
    # Convert async URL to sync for Alembic
    return url.replace("+asyncpg", "")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = get_url(context.get_tag_argument())
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def include_object(obj, name, type_, reflected, compare_to):
    """
    Keep central and tenant tables apart.

    - Central migrations (no --tag): only the public-schema registry tables.
    - Tenant migrations (--tag <database>): only the tenant tables.
    """
    if type_ != "table":
        return True

    if context.get_tag_argument():
        return name in TENANT_TABLES
    return name not in TENANT_TABLES


def do_run_migrations(connection, database_name: str | None = None) -> None:
    """Run migrations against the connected database."""
    if database_name:
        # Validate database name before any SQL execution
        settings = get_settings()
        validate_database_name(
            database_name,
            prefixes=(
                settings.tenant_database_prefix,
                settings.pool_database_prefix,
                settings.staging_database_prefix,
            ),
        )

    # Explicit search_path so tables never land in a non-default schema
    connection.execute(text("SET search_path TO public"))
    connection.commit()
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        version_table_schema="public",
        compare_type=True,
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode with sync engine."""
    # Tenant database from alembic command-line tag (--tag)
    database_name = context.get_tag_argument()

    connectable = create_engine(
        get_url(database_name),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        do_run_migrations(connection, database_name)

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
