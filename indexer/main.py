"""
Indexer main entry point.

Runs the chain indexer: one initial sync pass per chain, then the poll
loop until SIGINT/SIGTERM.

Usage:
    python -m indexer.main
"""

import asyncio
import sys
import warnings


# eth_utils warns about chains missing from its ChainId table
warnings.filterwarnings(
    "ignore",
    message=".*does not have a valid ChainId.*",
    category=UserWarning,
)

from loguru import logger  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from app.config.database import check_database_connection  # noqa: E402
from app.utils.exceptions import IndexerError  # noqa: E402
from indexer.initialization.logging import setup_logging  # noqa: E402
from indexer.initialization.services import initialize_all_services  # noqa: E402
from indexer.initialization.shutdown import shutdown_handler  # noqa: E402


async def main() -> int:
    """
    Initialize and run the indexer.

    Returns:
        Process exit code (0 on clean shutdown, 1 on fatal startup error)
    """
    setup_logging()

    try:
        components = await initialize_all_services()
    except (IndexerError, ValueError) as e:
        logger.critical(f"Failed to initialize chain clients: {e}")
        await shutdown_handler()
        return 1

    try:
        await check_database_connection()
    except (SQLAlchemyError, OSError) as e:
        logger.critical(f"Cannot connect to database: {e}")
        await shutdown_handler(components.clients)
        return 1

    scheduler = components.scheduler
    scheduler.install_signal_handlers()

    try:
        await scheduler.run_forever()
    finally:
        await shutdown_handler(components.clients)

    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Indexer stopped by user (KeyboardInterrupt)")


if __name__ == "__main__":
    run()
