"""Catalog database: async engine and sessions.

The catalog holds two tables, ``api_keys`` and ``buckets``. Tables are
created on startup by ``init_db``; the engine is built lazily from
``settings.database`` on first use.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# Registers ApiKey and Bucket on SQLModel.metadata
import cloudx.models  # noqa: F401
from cloudx.config import get_settings

logger = structlog.get_logger()

_engine: AsyncEngine | None = None
_session_factory: sessionmaker | None = None


def _ensure_sqlite_parent(url: str) -> None:
    """Create the directory holding a file-backed SQLite catalog."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        database = get_settings().database
        _ensure_sqlite_parent(database.url)
        _engine = create_async_engine(database.url, echo=database.echo)
    return _engine


def _get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            _get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def init_db() -> None:
    """Create catalog tables that do not exist yet."""
    async with _get_engine().begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("db.init", url=make_url(get_settings().database.url).render_as_string())


async def close_db() -> None:
    """Dispose of the engine; the next use builds a fresh one."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("db.closed")


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Session scoped to one unit of work.

    Commits when the block exits cleanly and rolls back if it raises.

    Usage:
        async with get_async_session() as session:
            result = await session.execute(select(Bucket))
    """
    async with _get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session_dependency() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one catalog session per request."""
    async with get_async_session() as session:
        yield session
