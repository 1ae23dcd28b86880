"""
Async SQLAlchemy engine, session factory, and DB lifecycle helpers.

A ``Database`` is built once per process (in the app lifespan) and handed to
request handlers through a FastAPI dependency. All access goes through
``Database.session()`` which yields an ``AsyncSession`` that commits on clean
exit and rolls back on error.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def _ensure_sqlite_dir(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


class Database:
    """Owns the async engine and session factory for one process.

    Args:
        url: SQLAlchemy async database URL.
        engine: Optional pre-built engine (used in tests with in-memory SQLite).
    """

    def __init__(self, url: str | None = None, engine: AsyncEngine | None = None) -> None:
        if engine is None:
            if url is None:
                raise ValueError("Either url or engine is required")
            _ensure_sqlite_dir(url)
            engine = create_async_engine(url, echo=False)
        self.engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield an ``AsyncSession`` that commits on success, rolls back on error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init(self) -> None:
        """Create all tables (idempotent)."""
        # Import for side effects: registers ORM tables on Base.metadata
        from vibetune.services.storage import models_db  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose the engine and its connection pool."""
        await self.engine.dispose()
