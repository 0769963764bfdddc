"""Logging configuration for livegrid.

Console logging with a level taken from settings; modules log through
``logging.getLogger(__name__)`` and inherit from the ``livegrid`` logger.
"""

from __future__ import annotations

import logging
import sys

logger = logging.getLogger("livegrid")


def setup_logging(level: str | int = logging.INFO, quiet: bool = False) -> logging.Logger:
    """Set up console logging for livegrid.

    Args:
        level: Log level name or number for the console handler.
        quiet: If True, console only shows warnings and errors.

    Returns:
        Configured logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    # Clear existing handlers so repeated setup does not duplicate output
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING if quiet else level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.debug("Logging initialized at level %s", logging.getLevelName(level))
    return logger


def get_logger(name: str = "livegrid") -> logging.Logger:
    return logging.getLogger(name)
