"""Logging configuration for cpmnet."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "cpmnet"

VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_WARNINGS = 1  # Dropped dependencies and other notices
VERBOSITY_STAGES = 2  # Stage boundaries
VERBOSITY_DEBUG = 3  # Every node update


def get_logger() -> logging.Logger:
    """Get the package logger. Use setup_logger() to attach output."""
    return logging.getLogger(LOGGER_NAME)


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the cpmnet logger with a verbosity level.

    Can be called multiple times to reconfigure the logger.

    Args:
        verbosity: 0=errors only, 1=warnings, 2=stage info, 3=debug
        stream: Optional output stream (defaults to sys.stderr, useful for testing)
    """
    logger = get_logger()
    logger.handlers.clear()

    level_map = {
        VERBOSITY_SILENT: logging.ERROR,
        VERBOSITY_WARNINGS: logging.WARNING,
        VERBOSITY_STAGES: logging.INFO,
        VERBOSITY_DEBUG: logging.DEBUG,
    }
    logger.setLevel(level_map.get(verbosity, logging.DEBUG if verbosity > 3 else logging.ERROR))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Reset the logger to a clean state between tests."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
