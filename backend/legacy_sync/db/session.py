"""Database engine and session configuration."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import legacy_sync.models  # noqa: F401  # Register table models on SQLModel.metadata
from legacy_sync.config import settings


def build_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine for the legacy database.

    Pool sizing only applies to server databases; SQLite picks its own pool.
    """
    url = database_url or settings.database_url
    pool_options: dict[str, Any] = {}
    if not url.startswith("sqlite"):
        pool_options = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_pre_ping": True,  # Verify connections before use
            "pool_recycle": 300,  # Recycle connections after 5 minutes
        }
    return create_async_engine(
        url,
        echo=False,  # SQL logging controlled via structlog configuration
        future=True,
        **pool_options,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the engine; objects stay readable after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables (id_sequences). Existing tables are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def database_scope(database_url: str | None = None) -> AsyncGenerator[async_sessionmaker[AsyncSession]]:
    """Context manager that provides a session factory for one unit of work.

    Creates a fresh engine bound to the current event loop and disposes of it
    on exit. Each asyncio.run() call creates a new event loop and pooled
    connections must not outlive it.

    Usage:
        async with database_scope() as session_maker:
            store = SqlCounterStore(session_maker)
            ...
    """
    engine = build_engine(database_url)
    try:
        yield build_session_maker(engine)
    finally:
        # Dispose engine to release all connections back to the server
        await engine.dispose()
