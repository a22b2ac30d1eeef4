"""
Database configuration.

Async SQLAlchemy engine and session factory shared by the indexer process.
"""

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config.settings import settings


async_engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=5,
)

# Short alias used by shutdown and migrations
engine = async_engine

async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def check_database_connection() -> None:
    """
    Verify the database is reachable.

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the connection fails
    """
    async with async_engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connected")
