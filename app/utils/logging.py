"""Logging setup shared by the API process.

setup_logging() is called once when app.main is imported. The level comes
from LOG_LEVEL (default INFO).
"""

from __future__ import annotations

import logging
import sys


def _str_to_level(level: str) -> int:
    mapping = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
        "NOTSET": logging.NOTSET,
    }
    return mapping.get(level.upper(), logging.INFO)


def setup_logging(level: int | str | None = None) -> None:
    """Configure root logging.

    Args:
        level: int or level name. Falls back to config.LOG_LEVEL.
    """
    if level is None:
        from app.config import LOG_LEVEL

        resolved_level = _str_to_level(LOG_LEVEL)
    elif isinstance(level, str):
        resolved_level = _str_to_level(level)
    else:
        resolved_level = level

    root_logger = logging.getLogger()

    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)

    root_logger.setLevel(resolved_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s:%(lineno)d | %(message)s",
        datefmt="%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(stream=sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(resolved_level)
    root_logger.addHandler(stream_handler)

    # SQL echo is controlled by DB_ECHO, keep the engine logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 300:
        return logging.WARNING
    return logging.INFO
