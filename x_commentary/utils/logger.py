"""
Logger factory for consistent application logging.
"""

import logging
import os
from typing import Optional, Set

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_logger_names: Set[str] = set()


def _level_from_env(level_name: Optional[str] = None) -> int:
    level_name = (level_name or os.getenv("LOG_LEVEL") or "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Configure and return a logger instance.

    The level comes from LOG_LEVEL (default INFO); unknown names fall back to INFO.

    Args:
        name: Logger name, typically __name__ from the caller.

    Returns:
        A configured logging.Logger instance.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(LOG_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(_level_from_env())
    _logger_names.add(name)
    return logger


def configure_logging(level_name: Optional[str] = None) -> int:
    """
    Re-apply the log level to every logger handed out by get_logger.

    Module loggers are created at import time, before a .env file is loaded,
    so the entry point calls this once the environment is in place.

    Args:
        level_name: Explicit level name; defaults to LOG_LEVEL, then INFO.

    Returns:
        The numeric level applied.
    """
    level = _level_from_env(level_name)
    for name in _logger_names:
        logging.getLogger(name).setLevel(level)
    return level
