"""
Indexer Initialization - Logging Module.

Module: logging.py
Configures loguru logger for the indexer.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging() -> None:
    """Configure console and rotating file sinks at LOG_LEVEL."""
    level = settings.log_level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    logger.info(f"Starting P2P exchange chain indexer ({settings.environment})...")
