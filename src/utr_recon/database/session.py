"""Engine and session lifecycle for the settlement store."""

import os
import logging
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    create_async_engine as sa_create_async_engine,
    AsyncSession,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy.pool import StaticPool

from . import models

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./utr_recon.db"


def get_database_url() -> str:
    """Resolve ``DATABASE_URL`` into an async driver URL.

    Plain ``postgresql://`` and ``postgres://`` URLs are rewritten to use
    asyncpg. Falls back to a local SQLite file.
    """
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        return DEFAULT_DATABASE_URL
    for prefix in ("postgresql://", "postgres://"):
        if db_url.startswith(prefix):
            return "postgresql+asyncpg://" + db_url[len(prefix):]
    return db_url


def is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or "mode=memory" in url)


def create_async_engine(database_url: Optional[str] = None, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the settlement store.

    In-memory SQLite lives inside a single connection, so it is pinned with
    ``StaticPool``. Every other URL, file SQLite included, gets a regular
    pool so concurrent sessions never share a transaction.

    Args:
        database_url: Database URL. If None, uses get_database_url().
        echo: If True, log all SQL statements.
    """
    url = database_url or get_database_url()

    if is_memory_sqlite(url):
        return sa_create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return sa_create_async_engine(url, echo=echo)


class Database:
    """One engine plus the session factory bound to it.

    Example:
        database = Database("sqlite+aiosqlite:///:memory:")
        await database.connect()
        async with database.session() as session:
            service = ReconciliationService.from_session(session)
        await database.disconnect()
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        self.database_url = database_url or get_database_url()
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self, create_tables: bool = True) -> None:
        self._engine = create_async_engine(self.database_url, echo=self.echo)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        if create_tables:
            async with self._engine.begin() as conn:
                await conn.run_sync(models.Base.metadata.create_all)
            logger.info("Database tables created")

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


# Process-wide database used by the API and CLI
_database: Optional[Database] = None


def get_database() -> Database:
    if _database is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _database


async def init_db(
    database_url: Optional[str] = None,
    echo: bool = False,
    create_tables: bool = True,
) -> Database:
    """Connect the process-wide database.

    Args:
        database_url: Database URL. If None, uses get_database_url().
        echo: If True, log all SQL statements.
        create_tables: If True, create all tables defined in models.
    """
    global _database

    database = Database(database_url, echo=echo)
    await database.connect(create_tables=create_tables)
    _database = database
    logger.info("Database initialized")
    return database


async def close_db() -> None:
    global _database

    if _database is not None:
        await _database.disconnect()
        _database = None
        logger.info("Database connection closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the process-wide database."""
    async with get_database().session() as session:
        yield session


def get_db_context():
    """Session context manager for use outside FastAPI (CLI, scripts)."""
    return get_database().session()
