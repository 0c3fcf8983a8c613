"""trade_replay/core/logger.py

Logging configuration using loguru.
"""

import sys
import os

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
)


def configure_logging(level: str = None, log_file: str = None):
    """
    (Re)configure loguru sinks.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env.
        log_file: Optional file sink path. Defaults to LOG_FILE env.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE")

    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level,
        colorize=True
    )

    if log_file:
        logger.add(
            log_file,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            level=level,
            enqueue=True  # Thread-safe
        )


configure_logging()
