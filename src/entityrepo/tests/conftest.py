"""
Core pytest configuration for the entire test suite.

This module provides only the essential database setup and core utilities
that are needed across ALL types of tests (models, repositories, errors,
logging).

Domain-specific fixtures (sample entities, repositories, factories) are located in:
- tests/test_fixtures/entities.py
- tests/test_fixtures/repository_fixtures.py
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import logging
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Set the level for noisy third-party loggers at import time (before importing modules that
# might initialize them). This prevents log spam during pytest collection (Faker, SQLAlchemy, etc.).
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from entityrepo.config import Settings
from entityrepo.core.logging.builder import setup_logging
from entityrepo.database import Base, create_engine_from_settings, create_session_factory
from entityrepo.tests.test_fixtures import entities  # noqa: F401 – registers the sample tables with Base.metadata

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install the library logging configuration once for the whole session.

    Logs go to stdout only (no LOG_DIR needed); individual tests that assert on
    records use pytest's `caplog`.
    """
    setup_logging(Settings(_env_file=None, LOG_TO_STDOUT=True, LOG_FORMAT="text"))
    yield


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file inside the test's tmp dir."""
    return Settings(_env_file=None, DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")


@pytest.fixture()
async def async_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine_from_settings(test_settings)

    # create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest.fixture()
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    A plain session on a fresh database.

    Each test gets its own SQLite file, so there is nothing to roll back: a
    repository call on an idle session commits its own transaction exactly as
    it would in production.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


# Repository test fixtures
from .test_fixtures.repository_fixtures import (  # noqa: E402
    fake,
    customer_repo,
    order_repo,
    make_customer,
    make_order,
    created_customer,
    multiple_customers,
)
