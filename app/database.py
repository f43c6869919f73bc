"""Async database connection using SQLAlchemy (supports SQLite and PostgreSQL)."""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def get_database_url() -> str:
    """Convert database URL to async format."""
    url = settings.DATABASE_URL

    # SQLite
    if url.startswith("sqlite"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    # PostgreSQL (Supabase hands out postgres:// URLs)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url


DATABASE_URL = get_database_url()
is_sqlite = DATABASE_URL.startswith("sqlite")

# Engine configuration
engine_kwargs = {
    "echo": False,
}

if is_sqlite:
    # SQLite-specific settings
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    engine_kwargs["poolclass"] = StaticPool
else:
    # PostgreSQL-specific settings
    engine_kwargs["pool_pre_ping"] = True
    engine_kwargs["pool_size"] = 5
    engine_kwargs["max_overflow"] = 10
    engine_kwargs["pool_recycle"] = 300  # Supabase pooler drops idle connections
    engine_kwargs["pool_timeout"] = 30
    engine_kwargs["pool_reset_on_return"] = "rollback"
    # Statement timeout: 30s in milliseconds
    engine_kwargs["connect_args"] = {
        "server_settings": {"statement_timeout": "30000"}
    }

async_engine = create_async_engine(DATABASE_URL, **engine_kwargs)

AsyncSessionLocal = sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Initialize database tables."""
    # Registers every table on SQLModel.metadata
    import app.models  # noqa: F401

    logger.info("Initializing database tables...")
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created successfully.")


async def drop_db() -> None:
    """Drop every table (used by the test suite)."""
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


async def close_db() -> None:
    """Close database connections."""
    logger.info("Closing database connections...")
    await async_engine.dispose()
    logger.info("Database connections closed.")


def get_pool_status() -> dict:
    """Get current connection pool statistics for monitoring."""
    if is_sqlite:
        return {"type": "sqlite", "pooled": False}

    pool = async_engine.pool
    checked_out = pool.checkedout()
    total_capacity = pool.size() + pool.overflow()
    return {
        "type": "postgresql",
        "pool_size": pool.size(),
        "checked_in": pool.checkedin(),
        "checked_out": checked_out,
        "overflow": pool.overflow(),
        "utilization_pct": round(
            (checked_out / total_capacity) * 100, 1
        ) if total_capacity > 0 else 0,
    }
