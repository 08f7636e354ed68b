"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

import logging

from .cli import create_app
from .client import PlantbookClient, create_client
from .config import PlantbookSettings
from .observability.logging import StructuredLogger, get_logger
from .options import with_logger


def build_cli_client(settings: PlantbookSettings) -> PlantbookClient:
    """Build the API client for a CLI command.

    Args:
        settings: CLI settings (credentials, base URL, rate limiting, debug logging).
    """
    options = settings.client_options()
    if settings.debug:
        logger = get_logger("openplantbook.cli", level=logging.DEBUG)
        options.append(with_logger(StructuredLogger(logger)))
    return create_client(*options)


app = create_app(build_cli_client)
