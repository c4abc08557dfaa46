"""Logging configuration for notetree.

Logs go to stderr only; stdout carries command output and, for ``serve``,
the MCP stdio transport.
"""

import os
import sys

from loguru import logger

from notetree.config import LOG_LEVEL_ENV


def configure_logging(*, verbose: bool = False) -> None:
    """Configure loguru; ``--verbose`` wins over NOTETREE_LOG_LEVEL."""
    logger.remove()
    level = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
