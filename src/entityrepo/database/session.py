"""
Engine / session factories and the outermost unit-of-work scope.

Nothing here is created at import time: callers build the engine from a
`Settings` instance (or a URL) and pass sessions to repositories explicitly.

    engine = create_engine_from_settings(get_settings())
    factory = create_session_factory(engine)

    async with session_scope(factory) as session:
        repo = CustomerRepository(session)
        await repo.create(customer)
    # committed here; rolled back if the block raised; always closed
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from entityrepo.config.settings import Settings

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings, **engine_kwargs) -> AsyncEngine:
    kwargs = {
        "echo": settings.SQLALCHEMY_ECHO,
        "pool_pre_ping": True,  # Enables connection health checks
    }
    kwargs.update(engine_kwargs)
    return create_async_engine(settings.DATABASE_URL, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: entities stay readable after the scope commits
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Yield a session; commit on success, roll back on any exception, always close.
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            logger.debug("session.rollback")
            await session.rollback()
            raise
