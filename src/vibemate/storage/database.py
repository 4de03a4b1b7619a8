"""
Database connection management for the SQL rule backend.

One async engine per process, created by init_database() and disposed by
close_database(). SQLite through aiosqlite is the default so the backend
works without a server; PostgreSQL URLs are switched to asyncpg.
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from sqlalchemy import func, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from vibemate.server.config import get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def normalize_database_url(url: str) -> str:
    """Rewrite a plain database URL to use its async driver."""
    for plain, driver in ASYNC_DRIVERS.items():
        if url.startswith(plain):
            return driver + url[len(plain) :]
    return url


def _ensure_sqlite_directory(url: str) -> None:
    # SQLite creates the file but not its parent directory
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


async def init_database(url: str | None = None) -> None:
    """
    Create the engine and the routing_rules table.

    A no-op when the engine already exists.

    Args:
        url: Database URL, defaults to ``storage.database_url`` from settings
    """
    global _engine, _session_factory

    if _engine is not None:
        return

    storage = get_settings().storage
    url = normalize_database_url(url or storage.database_url)
    logger.info(f"Opening rule database: {url.split('@')[-1]}")

    options: dict[str, Any] = {"echo": storage.echo}
    if url.startswith("sqlite"):
        _ensure_sqlite_directory(url)
    else:
        options.update(
            pool_size=storage.pool_size,
            max_overflow=storage.max_overflow,
            pool_pre_ping=True,
        )

    _engine = create_async_engine(url, **options)
    _session_factory = async_sessionmaker(bind=_engine, expire_on_commit=False)

    from vibemate.storage.models import Base

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Rule database ready")


async def close_database() -> None:
    """Dispose the engine; init_database() may be called again afterwards."""
    global _engine, _session_factory

    if _engine is None:
        return

    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Rule database closed")


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Open a session that commits when the block succeeds.

    Any exception rolls the session back and propagates.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = _session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def check_database_health() -> dict[str, Any]:
    """
    Probe the rule database.

    Returns:
        Connection status, dialect, latency, stored rule count and error
    """
    if _engine is None:
        return {
            "connected": False,
            "dialect": None,
            "latency_ms": None,
            "rules": None,
            "error": "Database not initialized",
        }

    from vibemate.storage.models import RoutingRuleRecord

    try:
        start = time.perf_counter()
        async with _engine.connect() as conn:
            count = await conn.scalar(select(func.count()).select_from(RoutingRuleRecord))
        latency = (time.perf_counter() - start) * 1000
    except Exception as e:
        logger.warning(f"Rule database health check failed: {e}")
        return {
            "connected": False,
            "dialect": _engine.dialect.name,
            "latency_ms": None,
            "rules": None,
            "error": str(e),
        }

    return {
        "connected": True,
        "dialect": _engine.dialect.name,
        "latency_ms": round(latency, 2),
        "rules": count,
        "error": None,
    }
