"""Reusable migration runner for both production and tests."""

from pathlib import Path

from alembic.config import Config

from alembic import command

ALEMBIC_INI = Path(__file__).resolve().parents[4] / "alembic.ini"


def _alembic_config() -> Config:
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "src" / "alembic"))
    return alembic_cfg


def run_migrations_sync(database_name: str | None = None) -> None:
    """Run Alembic migrations synchronously.

    Args:
        database_name: If provided, runs tenant migrations against this database.
                       If None, runs central database migrations.
    """
    alembic_cfg = _alembic_config()
    if database_name:
        command.upgrade(alembic_cfg, "head", tag=database_name)
    else:
        command.upgrade(alembic_cfg, "head")

