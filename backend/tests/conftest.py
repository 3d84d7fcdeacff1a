"""Shared test fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from legacy_sync.db import build_engine, build_session_maker, create_schema
from legacy_sync.services.sequences import SqlCounterStore
from tests.fakes import InMemoryCounterStore


@pytest.fixture
def store() -> InMemoryCounterStore:
    """In-memory counter store seeded with the review sequence."""
    store = InMemoryCounterStore()
    store.add("review_id_seq", next_block_start=500, block_size=5)
    return store


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of a fresh SQLite database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'legacy.db'}"


@pytest.fixture
async def engine(database_url: str) -> AsyncIterator[AsyncEngine]:
    engine = build_engine(database_url)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(engine)


@pytest.fixture
def sql_store(session_maker: async_sessionmaker[AsyncSession]) -> SqlCounterStore:
    return SqlCounterStore(session_maker)
