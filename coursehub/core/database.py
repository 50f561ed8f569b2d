# coursehub/core/database.py
"""Database connection and session management using SQLAlchemy."""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy import text
import logging

from .config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Pool and driver options; only PostgreSQL gets the asyncpg tuning."""
    options = {
        "pool_pre_ping": True,
        "echo": False,
    }
    if url.startswith("postgresql"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=30,
            pool_recycle=1800,
            connect_args={
                "command_timeout": 60,
                "server_settings": {
                    "jit": "off",
                    "application_name": "coursehub_realtime",
                    "idle_in_transaction_session_timeout": "60s",
                    "lock_timeout": "30s",
                },
            },
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,  # Manual control over flushing
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for API requests with proper error handling"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise

def get_session_factory() -> async_sessionmaker:
    """Session factory for long-lived handlers that open one short session per unit of work"""
    return AsyncSessionLocal

async def health_check_db() -> bool:
    """Fast health check"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False

async def close_db_connections():
    """Properly close all database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
