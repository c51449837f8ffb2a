"""Create tenant registry

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op
from src.alembic.migration_utils import is_tenant_migration

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    if is_tenant_migration():
        return

    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("tax_id", sqlmodel.sql.sqltypes.AutoString(length=32), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("database_name", sqlmodel.sql.sqltypes.AutoString(length=63), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("database_name", name="uq_tenants_database_name"),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'ativa', 'failed')",
            name="ck_tenants_status",
        ),
        schema="public",
    )
    op.create_index("ix_tenants_name", "tenants", ["name"], unique=False, schema="public")
    op.create_index("ix_tenants_tax_id", "tenants", ["tax_id"], unique=False, schema="public")
    op.create_index("ix_tenants_status", "tenants", ["status"], unique=False, schema="public")


def downgrade() -> None:
    if is_tenant_migration():
        return

    op.drop_index("ix_tenants_status", table_name="tenants", schema="public")
    op.drop_index("ix_tenants_tax_id", table_name="tenants", schema="public")
    op.drop_index("ix_tenants_name", table_name="tenants", schema="public")
    op.drop_table("tenants", schema="public")
