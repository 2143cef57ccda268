"""Process-wide async engine for the survey store.

Both the engine and its session factory are built on first use so that
importing this module never opens a connection.  ``dispose_engine()``
releases the pool and resets both, so a later call starts fresh.
"""

import logging
import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from survey_db.config import get_async_url

logger = logging.getLogger(__name__)

_pool_settings = {
    "pool_size": int(os.getenv("PG_POOL_SIZE", "5")),
    "max_overflow": int(os.getenv("PG_MAX_OVERFLOW", "10")),
    "pool_pre_ping": True,
}

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """The shared engine, created on first call."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(get_async_url(), **_pool_settings)
        logger.info(
            "Opened survey database pool (size=%d, overflow=%d)",
            _pool_settings["pool_size"],
            _pool_settings["max_overflow"],
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Sessions bound to the shared engine; rows stay usable after commit."""
    global _sessions
    if _sessions is None:
        _sessions = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _sessions


async def dispose_engine() -> None:
    global _engine, _sessions
    if _engine is None:
        return
    await _engine.dispose()
    logger.info("Closed survey database pool")
    _engine, _sessions = None, None
