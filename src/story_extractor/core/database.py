"""Async SQLAlchemy engine and session factory.

Provides:
- build_engine():           create the AsyncEngine for a DSN
- build_session_factory():  async_sessionmaker bound to an engine
- init_models():            create the story/batch tables if missing

The engine is built at application startup (and by the CLI) rather than at
import time, so tests and tools can point it at their own DSN.  SQLite DSNs
(the default, ``sqlite+aiosqlite:///./data/stories.db``) get their parent
directory created on demand.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Import models so Base.metadata knows every table before create_all().
from story_extractor.core.models import stories  # noqa: F401
from story_extractor.core.models.base import Base


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine from a database URL.

    Connection pool sizing only applies to server databases; SQLite gets
    SQLAlchemy's default pool for the aiosqlite driver.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        return create_async_engine(database_url, echo=False)
    return create_async_engine(
        database_url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
