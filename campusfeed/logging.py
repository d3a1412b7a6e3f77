"""Centralized logging configuration using Loguru.

Usage:
    from campusfeed.logging import logger
    logger.info("Message")

The sink is configured from ``settings.LOG_LEVEL`` and ``settings.LOG_JSON``
the first time :func:`configure_logging` runs (application startup).
"""

import sys

from loguru import logger

__all__ = ["logger", "configure_logging"]

_HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO", json_mode: bool = False) -> None:
    """Replace loguru's default handler with the application sink.

    Safe to call more than once; each call drops previously installed sinks.
    """
    logger.remove()
    if json_mode:
        logger.add(sys.stderr, level=level.upper(), serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stderr, level=level.upper(), format=_HUMAN_FORMAT, backtrace=False, diagnose=False)
