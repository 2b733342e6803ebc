from __future__ import annotations

import os
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from askmynotes.db.models import Base


def _get_database_url() -> str:
    """
    Return the async database URL.

    Defaults to a local SQLite file so development needs no server;
    deployments point this at `postgresql+asyncpg://...`.
    """
    return os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./askmynotes.db")


DATABASE_URL = _get_database_url()

_engine_kwargs = {"echo": False, "future": True}
if DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL:
    # In-memory SQLite: all sessions share one connection.
    _engine_kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})

engine = create_async_engine(DATABASE_URL, **_engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def create_all() -> None:
    """Create missing tables (local SQLite and tests; deployments use alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one AsyncSession per request; routes inject it through `DbSession`."""
    async with AsyncSessionLocal() as session:
        yield session
