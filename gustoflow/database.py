"""
Database Connection Module
Handles the managed store connection using the SQLAlchemy async engine.

The engine is built lazily from settings. With an empty ``DATABASE_URL``
there is no binding: ``get_db`` yields ``None`` and the gateway answers every
action with a configuration error instead of failing at import time.
"""

import logging
from functools import lru_cache
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from gustoflow.core.config import get_settings

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


@lru_cache()
def get_engine() -> Optional[AsyncEngine]:
    """Create the async engine, or None when no database is configured."""
    settings = get_settings()
    if not settings.has_database:
        return None

    options = {"echo": settings.debug}
    if not settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=5,  # Connection pool size
            max_overflow=10,  # Extra connections when pool is full
            pool_pre_ping=True,
        )
    return create_async_engine(settings.database_url, **options)


@lru_cache()
def get_session_maker() -> Optional[async_sessionmaker[AsyncSession]]:
    engine = get_engine()
    if engine is None:
        return None
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db() -> AsyncIterator[Optional[AsyncSession]]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session (or None when unbound) and ensures cleanup.
    """
    session_maker = get_session_maker()
    if session_maker is None:
        yield None
        return

    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register models on Base.metadata
    import gustoflow.models  # noqa: F401

    engine = engine or get_engine()
    if engine is None:
        logger.warning("No database binding configured, skipping schema creation")
        return

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")


async def dispose_engine() -> None:
    engine = get_engine()
    if engine is not None:
        await engine.dispose()
