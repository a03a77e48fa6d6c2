"""
Async database engine and connection helpers.

Uses SQLAlchemy 2.x async engine with the asyncpg driver for PostgreSQL.
The engine is created from the configured DATABASE_URL and owned by the
single run that created it; there are no module-level singletons.

CHANGELOG:
- 2026-10-17: Add quiet rollback/close/dispose helpers for error paths
- 2026-10-17: Initial creation
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from luxpower.src.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

_ASYNC_DRIVER_PREFIX = "postgresql+asyncpg://"
_PLAIN_PREFIXES = ("postgres://", "postgresql://")


def to_async_url(database_url: str) -> str:
    """Rewrite a libpq-style URL to use the asyncpg driver.

    ``postgres://`` and ``postgresql://`` URLs are rewritten; URLs that
    already name a driver are returned unchanged.

    Args:
        database_url: Connection URL as configured.

    Returns:
        str: A URL SQLAlchemy can open with ``create_async_engine``.
    """
    for prefix in _PLAIN_PREFIXES:
        if database_url.startswith(prefix):
            return _ASYNC_DRIVER_PREFIX + database_url[len(prefix) :]
    return database_url


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the given URL.

    Args:
        database_url: PostgreSQL/TimescaleDB connection URL.

    Returns:
        AsyncEngine: Configured async engine for PostgreSQL via asyncpg.

    Raises:
        DatabaseConnectionError: If the URL cannot be parsed or names an
            unavailable driver.
    """
    try:
        return create_async_engine(to_async_url(database_url), echo=False)
    except (SQLAlchemyError, ValueError) as exc:
        raise DatabaseConnectionError(f"Invalid DATABASE_URL: {exc}") from exc


async def connect(engine: AsyncEngine) -> AsyncConnection:
    """Open a connection and verify it with ``SELECT 1``.

    The caller owns the returned connection and must close it.

    Args:
        engine: Engine from :func:`create_engine`.

    Returns:
        AsyncConnection: An open, verified connection.

    Raises:
        DatabaseConnectionError: If the database cannot be reached.
    """
    try:
        conn = await engine.connect()
    except (SQLAlchemyError, OSError) as exc:
        raise DatabaseConnectionError(f"Could not connect to database: {exc}") from exc

    try:
        await conn.execute(text("SELECT 1"))
        await conn.commit()
    except SQLAlchemyError as exc:
        await close_quietly(conn)
        raise DatabaseConnectionError(f"Database ping failed: {exc}") from exc

    logger.info("Connected to database")
    return conn


# ---------------------------------------------------------------------------
# Cleanup on error paths
# ---------------------------------------------------------------------------
# A dead connection fails its rollback/close too. These helpers log that
# secondary failure so the stage error already in flight still propagates.


async def rollback_quietly(conn: AsyncConnection) -> None:
    """Roll back the current transaction, logging instead of raising."""
    try:
        await conn.rollback()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Rollback failed: %s", exc)


async def close_quietly(conn: AsyncConnection) -> None:
    """Close the connection, logging instead of raising."""
    try:
        await conn.close()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Closing database connection failed: %s", exc)


async def dispose_quietly(engine: AsyncEngine) -> None:
    """Dispose the engine's pool, logging instead of raising."""
    try:
        await engine.dispose()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Disposing database engine failed: %s", exc)
