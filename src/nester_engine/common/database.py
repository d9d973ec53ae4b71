"""Async database manager for Nester-Engine (single-DB).

Handlers share one session per request. Writes that may legitimately lose a
race against another request (the lazy per-tenant rows) go through
``insert_or_get`` so a unique-key collision never rolls back the caller's
transaction.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from nester_engine.common.config import NesterSettings, get_settings
from nester_engine.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import nester_engine.brand.models  # noqa: F401
import nester_engine.properties.models  # noqa: F401
import nester_engine.jobs.models  # noqa: F401

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Base)


async def insert_or_get(
    session: AsyncSession,
    instance: T,
    lookup: Callable[[], Awaitable[Optional[T]]],
) -> Optional[T]:
    """Insert ``instance`` inside a SAVEPOINT.

    On a unique-key collision only the savepoint is rolled back; the row that
    won is fetched with ``lookup`` and returned instead. Rows the session had
    already loaded stay usable either way.
    """
    try:
        async with session.begin_nested():
            session.add(instance)
        return instance
    except IntegrityError:
        logger.info(
            "Concurrent insert for %s, using existing row", type(instance).__name__,
        )
        return await lookup()


class DatabaseManager:
    """Owns the async engine and hands out request-scoped sessions."""

    def __init__(self, settings: NesterSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        self.engine = create_async_engine(self._settings.db_url, echo=False)
        # Handlers read model attributes after commit (responses, cascades).
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    def _require_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized; call init() first")
        return self._session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: committed on success, rolled back on any error."""
        async with self._require_factory()() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized; call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
