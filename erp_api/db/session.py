from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None

_ATOMIC_DEPTH_KEY = "atomic_depth"


def _engine_options(settings: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.SQL_ECHO, "pool_pre_ping": True}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return options


# PUBLIC_INTERFACE
def init_engine(settings: Settings | None = None) -> AsyncEngine:
    """
    Create the process-wide AsyncEngine and session maker.

    Called once at startup; calling it again returns the existing engine.
    """
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        settings = settings or get_settings()
        _ENGINE = create_async_engine(settings.async_database_url, **_engine_options(settings))
        logger.info("Database engine initialized (pool_size=%s)", settings.DB_POOL_SIZE)
    if _SESSION_MAKER is None:
        _SESSION_MAKER = async_sessionmaker(
            bind=_ENGINE, expire_on_commit=False, autoflush=False
        )
    return _ENGINE


# PUBLIC_INTERFACE
async def dispose_engine() -> None:
    """Drain the connection pool at shutdown."""
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is not None:
        await _ENGINE.dispose()
        logger.info("Database engine disposed")
    _ENGINE = None
    _SESSION_MAKER = None


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    """Return the global AsyncEngine instance."""
    return init_engine()


# PUBLIC_INTERFACE
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Return the global session factory, initializing the engine if needed."""
    init_engine()
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession suitable for FastAPI dependency injection.
    Ensures engine/session factory is initialized.
    """
    async with get_session_maker()() as session:
        yield session


# PUBLIC_INTERFACE
@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Run a block as one unit of work on the session.

    The outermost block commits on success and rolls back on any exception.
    Nested blocks join the outer unit: they neither commit nor roll back, and
    their exceptions propagate so the outer block rolls everything back.

    Usage:
        async with atomic(session):
            ...
    """
    depth = session.info.get(_ATOMIC_DEPTH_KEY, 0)
    session.info[_ATOMIC_DEPTH_KEY] = depth + 1
    try:
        yield session
        if depth == 0:
            await session.commit()
    except BaseException:
        if depth == 0:
            await session.rollback()
        raise
    finally:
        session.info[_ATOMIC_DEPTH_KEY] = depth
