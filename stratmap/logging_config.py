"""
Logging setup for the stratmap cascade engine.

Library modules only create loggers (logging.getLogger(__name__)); handlers
are installed here, once, by the CLI or by an embedding application.

Level resolution, first match wins:
    explicit argument → STRATMAP_LOG_LEVEL env var → config.json log_level
"""
import logging
import os
import sys
from typing import Optional

from stratmap.constants import get_log_level

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
LOGGER_NAME = "stratmap"


def resolve_level(level_name: Optional[str] = None) -> int:
    """Turn a level name into a logging level, falling back to WARNING."""
    name = level_name or os.getenv("STRATMAP_LOG_LEVEL") or get_log_level()
    return getattr(logging, str(name).upper(), logging.WARNING)


def configure_logging(level_name: Optional[str] = None) -> logging.Logger:
    """
    Install a single stderr handler on the package logger.

    Calling it again replaces the handler rather than stacking a new one.

    Args:
        level_name: Level name such as "DEBUG"; None to use env/config.

    Returns:
        The configured package logger.
    """
    level = resolve_level(level_name)

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
