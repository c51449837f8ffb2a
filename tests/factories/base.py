"""Base factory configuration for polyfactory."""

from datetime import UTC, datetime
from itertools import count

from polyfactory.factories.sqlalchemy_factory import SQLAlchemyFactory

_ids = count(1000)


def utc_now() -> datetime:
    """Generate current UTC time (naive for PostgreSQL compatibility)."""
    return datetime.now(UTC).replace(tzinfo=None)


def next_id() -> int:
    """Process-unique integer id, clear of the small ids tests pick by hand."""
    return next(_ids)


class BaseFactory(SQLAlchemyFactory):
    """Base factory with common configuration for all models.

    Provides:
    - Sequential integer ids for primary keys
    - UTC timestamp generation
    - Disabled auto-relationship setting (we control relationships manually)
    """

    __is_base_factory__ = True
    __set_relationships__ = False
    __set_foreign_keys__ = False  # We set FK values explicitly
