"""Shared logging utilities for consistent client observability.

Usage example:
    from openplantbook.observability.logging import StructuredLogger, get_logger

    logger = StructuredLogger(get_logger("openplantbook.client"))
    logger.info("search completed", query="monstera", results=2)
"""

from __future__ import annotations

import logging
import time
from typing import override

from ..protocols import Logger

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Return a standard logger configured for UTC timestamps.

    Args:
        name: Logger name (use a stable module-qualified name).
        level: Level applied when the logger is first configured.

    Returns:
        A logger with a single stream handler and a consistent UTC format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False
    return logger


def format_fields(msg: str, fields: dict[str, object]) -> str:
    """Render `msg key=value ...`, quoting values that contain spaces."""
    if not fields:
        return msg
    parts = [msg]
    for key, value in fields.items():
        text = str(value)
        if not text or " " in text:
            text = repr(text)
        parts.append(f"{key}={text}")
    return " ".join(parts)


class StructuredLogger(Logger):
    """Adapt a stdlib logger to the client's structured `Logger` protocol."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @override
    def debug(self, msg: str, **fields: object) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(format_fields(msg, fields))

    @override
    def info(self, msg: str, **fields: object) -> None:
        if self._logger.isEnabledFor(logging.INFO):
            self._logger.info(format_fields(msg, fields))

    @override
    def warn(self, msg: str, **fields: object) -> None:
        self._logger.warning(format_fields(msg, fields))

    @override
    def error(self, msg: str, **fields: object) -> None:
        self._logger.error(format_fields(msg, fields))


class NullLogger(Logger):
    """Logger that discards everything; the library default."""

    @override
    def debug(self, msg: str, **fields: object) -> None:
        return None

    @override
    def info(self, msg: str, **fields: object) -> None:
        return None

    @override
    def warn(self, msg: str, **fields: object) -> None:
        return None

    @override
    def error(self, msg: str, **fields: object) -> None:
        return None


NULL_LOGGER = NullLogger()
