"""
Async database access for registrations.

The web app opens one session per request (get_db_session); the relay job
holds one session for a whole pass (session_scope). SQLite via aiosqlite
by default, any async SQLAlchemy URL via DATABASE_URL.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from dinobot.db.models import Base
from dinobot.config import settings
import logging

logger = logging.getLogger(__name__)

# Set by init_db, cleared by close_db
engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker] = None


def _build_engine(database_url: str) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        # One shared connection, so ":memory:" databases survive between sessions
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_async_engine(database_url, pool_pre_ping=True, pool_recycle=3600)


async def init_db(database_url: Optional[str] = None):
    """
    Create the engine and session factory, then create missing tables.

    Args:
        database_url: Overrides settings.database_url (tests use in-memory SQLite)
    """
    global engine, async_session_maker

    database_url = database_url or settings.database_url
    logger.info(f"Initializing database: {database_url.split('://')[0]}")

    engine = _build_engine(database_url)
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("✅ Database initialized successfully")


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Session that commits when the block exits, whether or not it raised.

    Used by the relay job. Cursor updates commit on their own as well.
    """
    if async_session_maker is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.commit()


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency: one session per request.

    Commits if the endpoint returns, rolls back if it raises.
    """
    if async_session_maker is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with async_session_maker() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        else:
            await session.commit()


async def close_db():
    """Dispose of the engine."""
    global engine, async_session_maker
    if engine is None:
        return

    await engine.dispose()
    engine = None
    async_session_maker = None
    logger.info("Database connection closed")
