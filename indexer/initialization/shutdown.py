"""
Indexer Initialization - Shutdown Module.

Module: shutdown.py
Handles graceful shutdown of the indexer.
Closes chain clients and database connections.
"""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from app.services.blockchain.client_registry import ChainClientRegistry


async def shutdown_handler(clients: ChainClientRegistry | None = None) -> None:
    """Handle graceful shutdown."""
    logger.info("Graceful shutdown initiated...")

    if clients is not None:
        clients.close()
        logger.info("Chain clients closed")

    try:
        from app.config.database import engine
        await engine.dispose()
        logger.info("Database connections closed")
    except SQLAlchemyError as e:
        logger.warning(f"Error closing database: {e}")

    logger.info("Graceful shutdown complete")
