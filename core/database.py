"""
Database engine and session management with SQLAlchemy async
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(database_url: str = settings.DATABASE_URL, pool_size: int = settings.DATABASE_POOL_SIZE) -> AsyncEngine:
    """
    Create the async engine.

    Every concurrently running partition holds its own connection for the
    whole scan, so the pool is never smaller than the sync concurrency.
    """
    options = {
        "echo": settings.LOG_LEVEL.upper() == "DEBUG",
        "future": True,
    }
    if not database_url.startswith("sqlite"):
        options["pool_size"] = max(pool_size, settings.SYNC_CONCURRENCY)
        options["pool_pre_ping"] = True
    return create_async_engine(database_url, **options)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()

async_session_maker = build_session_maker(engine)
