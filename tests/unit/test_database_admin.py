"""Tests for the PostgreSQL pool lock wiring."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import NullPool

from src.app.core.db import engine as engine_module
from src.app.core.db.admin import PostgresDatabaseAdmin

pytestmark = pytest.mark.unit


def _lock_statements(lock_engine: MagicMock) -> list[str]:
    conn = lock_engine.connect.return_value.__enter__.return_value
    conn = conn.execution_options.return_value
    return [str(call.args[0]) for call in conn.execute.call_args_list]


class TestPoolLock:
    def test_lock_is_taken_on_dedicated_engine(self):
        """Waiters on the lock must not hold connections from the shared pool."""
        shared, lock_engine = MagicMock(), MagicMock()
        admin = PostgresDatabaseAdmin(engine=shared, lock_key=7, lock_engine=lock_engine)

        with admin.pool_lock():
            pass

        shared.connect.assert_not_called()
        assert _lock_statements(lock_engine) == [
            "SELECT pg_advisory_lock(:key)",
            "SELECT pg_advisory_unlock(:key)",
        ]

    def test_lock_released_on_error(self):
        lock_engine = MagicMock()
        admin = PostgresDatabaseAdmin(engine=MagicMock(), lock_key=7, lock_engine=lock_engine)

        with pytest.raises(RuntimeError):
            with admin.pool_lock():
                raise RuntimeError("rename failed")

        assert _lock_statements(lock_engine)[-1] == "SELECT pg_advisory_unlock(:key)"


class TestLockEngine:
    def test_lock_engine_is_unpooled_and_separate(self):
        try:
            lock_engine = engine_module.get_lock_engine()
            assert isinstance(lock_engine.pool, NullPool)
            assert lock_engine is not engine_module.get_sync_engine()
            assert engine_module.get_lock_engine() is lock_engine
        finally:
            engine_module.dispose_sync_engine()
