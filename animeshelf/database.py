"""Key-value store adapter over SQLAlchemy's asyncio extension."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from sqlalchemy import delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .db_models import Base, KeyValueEntry
from .errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore:
    """String-keyed, string-valued persistent store backed by SQLite.

    Every higher-level entity lives as one JSON document under its own key.
    There are no multi-key transactions; repositories serialise their own
    read-modify-write sequences through :meth:`lock`.
    """

    def __init__(self, database_url: str):
        self._engine: AsyncEngine = create_async_engine(database_url, future=True)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_all(self) -> None:
        """Create the backing table if it does not yet exist."""

        try:
            async with self._engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"Failed to initialise store: {exc}") from exc

    async def dispose(self) -> None:
        """Dispose of the underlying database engine."""

        await self._engine.dispose()

    def lock(self, key: str) -> asyncio.Lock:
        """Return the lock guarding mutations of ``key``."""

        return self._locks.setdefault(key, asyncio.Lock())

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Provide a session, translating backend failures into StorageError."""

        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(str(exc)) from exc

    async def get(self, key: str) -> str | None:
        """Return the raw value for ``key`` or ``None`` when it was never written."""

        async with self.session() as session:
            entry = await session.get(KeyValueEntry, key)
            if entry is None:
                return None
            return entry.value

    async def set(self, key: str, value: str) -> None:
        """Insert or replace the value stored under ``key``."""

        statement = sqlite_insert(KeyValueEntry).values(
            key=key, value=value, updated_at=datetime.utcnow()
        )
        statement = statement.on_conflict_do_update(
            index_elements=[KeyValueEntry.key],
            set_={
                "value": statement.excluded.value,
                "updated_at": statement.excluded.updated_at,
            },
        )
        async with self.session() as session:
            await session.execute(statement)
            await session.commit()

    async def remove(self, key: str) -> None:
        """Delete ``key``; removing an absent key is a no-op."""

        async with self.session() as session:
            await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            await session.commit()

    async def clear(self) -> None:
        """Delete every stored key."""

        async with self.session() as session:
            await session.execute(delete(KeyValueEntry))
            await session.commit()
        logger.info("Cleared all persisted keys")
