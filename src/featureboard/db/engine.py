"""Async PostgreSQL engine for the feature store.

A drag commit fans out into one session per moved card, all awaited
together, so a long cross-lane move can briefly hold many pooled
connections. The pool is sized for that burst and logs when a checkout
has to spill into overflow.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from featureboard.config import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)
_pool_logger = logging.getLogger(f"{__name__}.pool")

POOL_SIZE = 5
MAX_OVERFLOW = 10


class _Database:
    """Engine and session factory, created lazily in the running loop."""

    __slots__ = ("engine", "sessions")

    def __init__(self) -> None:
        self.engine: AsyncEngine | None = None
        self.sessions: async_sessionmaker[AsyncSession] | None = None


_db = _Database()


def _watch_pool(engine: AsyncEngine) -> None:
    """Log overflow checkouts and dropped connections."""
    pool = engine.sync_engine.pool

    @event.listens_for(pool, "checkout")
    def _checkout(*_args: object) -> None:
        in_use = pool.checkedout()  # type: ignore[attr-defined]
        if in_use > POOL_SIZE:
            _pool_logger.info("Pool overflow: %d connections in use", in_use)

    @event.listens_for(pool, "invalidate")
    def _invalidate(
        _dbapi_conn: object, _record: object, exception: BaseException | None
    ) -> None:
        _pool_logger.warning(
            "Connection invalidated (%s): %s",
            type(exception).__name__ if exception else "explicit",
            pool.status(),
        )


def get_database_url() -> str:
    """The configured DATABASE__URL.

    Raises:
        ValueError: If no URL is configured.
    """
    url = get_settings().database.url
    if not url:
        msg = (
            "DATABASE__URL is not set; configure it in .env or the "
            "environment, or run with DEV__MEMORY_STORE=true."
        )
        raise ValueError(msg)
    return url


def get_engine() -> AsyncEngine | None:
    return _db.engine


async def init_db(url: str | None = None) -> None:
    """Create the engine and session factory.

    Registered as a NiceGUI startup hook; tests call it directly with
    their own URL.
    """
    engine = create_async_engine(
        url or get_database_url(),
        echo=get_settings().dev.database_echo,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={"timeout": 10, "command_timeout": 30},
    )
    _watch_pool(engine)
    _db.engine = engine
    _db.sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def close_db() -> None:
    """Dispose of the engine; the next session re-creates it."""
    engine, _db.engine, _db.sessions = _db.engine, None, None
    if engine is not None:
        await engine.dispose()


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """One unit of work: committed on exit, rolled back if anything raises.

    Usage:
        async with get_session() as session:
            feature = await session.get(Feature, feature_id)
    """
    if _db.sessions is None:
        await init_db()
    assert _db.sessions is not None

    async with _db.sessions() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.exception("Feature store session failed; rolling back")
            await session.rollback()
            raise
