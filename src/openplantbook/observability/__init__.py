"""Logging helpers shared by the client and CLI."""

from .logging import NULL_LOGGER, NullLogger, StructuredLogger, get_logger

__all__ = ["NULL_LOGGER", "NullLogger", "StructuredLogger", "get_logger"]
