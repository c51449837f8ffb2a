"""Base repository with common operations over the central database."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, select

from src.app.core.db import get_sync_engine

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common database operations.

    Repositories are synchronous: provisioning calls them from worker threads.
    Each public method runs in its own short session and commits before
    returning, so status changes are visible to other workers immediately.
    """

    model: type[ModelType]

    def __init__(self, engine: Engine | None = None):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = get_sync_engine()
        return self._engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    def get_by_id(self, id: int) -> ModelType | None:
        """Get a record by its primary key."""
        with self.session() as session:
            return session.exec(
                select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
            ).first()
