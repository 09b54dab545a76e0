"""
FitScore Engine - Database Engine.

============================================================
PURPOSE
============================================================
Async SQLAlchemy engine and session factory for the durable
per-date store.

- Default: local SQLite file via aiosqlite
- Any async SQLAlchemy URL works (e.g. postgresql+asyncpg)
- Schema creation for fresh databases

============================================================
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .config import StorageConfig


logger = logging.getLogger(__name__)

# =============================================================
# DECLARATIVE BASE
# =============================================================

Base = declarative_base()

# =============================================================
# DATABASE ENGINE
# =============================================================


def create_database_engine(config: Optional[StorageConfig] = None) -> AsyncEngine:
    """
    Create the async engine for the durable store.

    In-memory SQLite URLs get a StaticPool so every session
    shares the same database.
    """
    config = config or StorageConfig()
    url = config.database_url

    logger.info(f"Creating database engine for: {url.split('@')[-1]}")

    kwargs = {"echo": config.echo}
    if url.startswith("sqlite") and ":memory:" in url:
        kwargs["poolclass"] = StaticPool

    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory with commit-safe defaults."""
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    # Registers the mapped tables on Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("FitScore schema ready")
