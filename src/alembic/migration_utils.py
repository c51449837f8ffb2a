from __future__ import annotations

from alembic import context


def is_tenant_migration() -> bool:
    """True when Alembic was invoked with `--tag=<tenant_database>`.

    Tags name the tenant (or pool) database being migrated. Central-database
    migrations must no-op in that mode, and tenant migrations must no-op
    without it.
    """
    return bool(context.get_tag_argument())
