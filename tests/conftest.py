"""Shared pytest fixtures for all test suites."""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from brandkit.db.engine import create_async_engine_from_url, create_session_factory
from brandkit.db.inmemory import (
    InMemoryDocumentRepository,
    InMemorySubjectRepository,
    InMemoryUnitRepository,
)
from brandkit.db.models import Base
from brandkit.sync.feed import InMemoryChangeFeed


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Async engine on a throwaway SQLite file with all tables created."""
    engine = create_async_engine_from_url(
        f"sqlite+aiosqlite:///{tmp_path / 'brandkit.db'}",
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    engine = create_async_engine_from_url(database_url, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup: drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(sqlite_engine)


@pytest.fixture
def feed() -> InMemoryChangeFeed:
    return InMemoryChangeFeed()


@pytest.fixture
def unit_repo(feed: InMemoryChangeFeed) -> InMemoryUnitRepository:
    return InMemoryUnitRepository(feed)


@pytest.fixture
def document_repo() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def subject_repo(
    unit_repo: InMemoryUnitRepository, document_repo: InMemoryDocumentRepository
) -> InMemorySubjectRepository:
    return InMemorySubjectRepository(unit_repo, document_repo)
