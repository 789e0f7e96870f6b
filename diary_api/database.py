"""
Diary API — Database Session Management
=========================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   One engine per process; one session per request that commits when the
       handler returns normally and rolls back when it raises.
Who:   Used by route handlers via FastAPI's dependency injection system.

Transaction boundary:
    Repositories only flush. The commit in get_db_session() is the single
    point where a request's writes become durable, so a failure raised after
    a flush (for example an image directory that cannot be removed) undoes
    the row changes made earlier in the same request.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from diary_api.config import settings


def _engine_options() -> Dict[str, Any]:
    """Pool sizing applies to server databases only; SQLite picks its own pool."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: attributes stay readable after commit without
# another round trip (lazy loads are not available under asyncio)
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Commits after the handler returns, rolls back and re-raises on any
    exception, and always closes the session.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close all pooled connections (application shutdown)."""
    await engine.dispose()
