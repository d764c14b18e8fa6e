"""
Engine, session factory and transaction scopes.

Nothing outside this module opens a connection by itself.  Requests get
their session from the ``get_db`` dependency and wrap it in the store
adapters from ``app.store``; maintenance scripts use ``session_scope``.
Both commit when the block finishes cleanly and roll back otherwise.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.middleware import install_query_counter

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)
install_query_counter(engine)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    One unit of work: yield a session, commit on success, roll back and
    re-raise on any error.  *factory* defaults to the application's
    ``async_session``.
    """
    async with (factory or async_session)() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            logger.debug("Rolling back session after %s", type(exc).__name__)
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request dependency: one ``session_scope`` per request."""
    async with session_scope() as session:
        yield session


async def close_db() -> None:
    """Dispose of pooled connections; called from the application lifespan."""
    await engine.dispose()
    logger.info("Database connections closed")
