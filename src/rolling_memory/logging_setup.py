"""Loguru sink configuration."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(debug_mode: bool = False) -> int:
    """Replace loguru's sinks with a single stderr sink.

    Args:
        debug_mode: Log at DEBUG instead of INFO

    Returns:
        Id of the new sink
    """
    logger.remove()
    return logger.add(
        sys.stderr,
        level="DEBUG" if debug_mode else "INFO",
        format=LOG_FORMAT,
    )
