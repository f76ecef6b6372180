"""
Database wiring for the assignment snapshot store.

The service writes one full Assignment document plus one event row per
replacement (see kernel/repository.py), reads a document back only on a cache
miss, and otherwise touches the database for the /health probe. Engines and
session makers are built by factories so tests can point the same wiring at a
temp SQLite file.
"""

from typing import AsyncGenerator, List, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from synapse.config import get_settings
from synapse.logging_config import get_logger

logger = get_logger(__name__)


def _sqlite_on_connect(dbapi_conn, connection_record) -> None:
    # Concurrent snapshot saves from different engines wait instead of failing
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """SQLite (aiosqlite) gets a connection per session; PostgreSQL (asyncpg) a small pool."""
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, echo=echo, poolclass=NullPool)
        event.listen(engine.sync_engine, "connect", _sqlite_on_connect)
        return engine
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False, autoflush=False)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)
async_session_maker = build_session_maker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, used by the health probe."""
    async with async_session_maker() as session:
        yield session


async def init_db(bind: Optional[AsyncEngine] = None) -> List[str]:
    """Create the assignment and event-log tables if missing; returns the table names."""
    from synapse.kernel.models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    tables = sorted(Base.metadata.tables)
    logger.debug("Tables ready", extra={"tables": tables})
    return tables


async def close_db() -> None:
    await engine.dispose()
