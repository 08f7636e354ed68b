"""OpenPlantbook API client.

Usage example:
    from openplantbook import create_client, with_api_key

    with create_client(with_api_key("your-api-key")) as client:
        for plant in client.search_plants("monstera"):
            print(plant.pid, plant.alias)
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

_PACKAGE_NAME = "openplantbook-client"


def _resolve_version() -> str:
    try:
        return version(_PACKAGE_NAME)
    except PackageNotFoundError:
        return "0.0.0+unknown"


__version__ = _resolve_version()

from .cancellation import CancellationToken  # noqa: E402
from .client import PlantbookClient, create_client  # noqa: E402
from .exceptions import (  # noqa: E402
    ApiError,
    ClientClosedError,
    ConfigError,
    InputValidationError,
    MultipleAuthMethodsError,
    NoAuthProvidedError,
    NotFoundError,
    OperationCancelledError,
    PlantbookError,
    RateLimitedError,
    RateLimitExceededError,
    ResponseDecodeError,
    TransportError,
    UnauthorizedError,
)
from .infrastructure.cache import InMemoryCache, NoOpCache  # noqa: E402
from .infrastructure.resilience import RateLimitBehavior  # noqa: E402
from .models import DetailOptions, PlantDetails, PlantSearchResult, SearchOptions  # noqa: E402
from .options import (  # noqa: E402
    disable_rate_limit,
    with_api_key,
    with_base_url,
    with_cache,
    with_logger,
    with_oauth2,
    with_rate_limit,
    with_rate_limit_behavior,
    with_session,
    with_timeout,
)

__all__ = [
    "ApiError",
    "CancellationToken",
    "ClientClosedError",
    "ConfigError",
    "DetailOptions",
    "InMemoryCache",
    "InputValidationError",
    "MultipleAuthMethodsError",
    "NoAuthProvidedError",
    "NoOpCache",
    "NotFoundError",
    "OperationCancelledError",
    "PlantDetails",
    "PlantSearchResult",
    "PlantbookClient",
    "PlantbookError",
    "RateLimitBehavior",
    "RateLimitExceededError",
    "RateLimitedError",
    "ResponseDecodeError",
    "SearchOptions",
    "TransportError",
    "UnauthorizedError",
    "__version__",
    "create_client",
    "disable_rate_limit",
    "with_api_key",
    "with_base_url",
    "with_cache",
    "with_logger",
    "with_oauth2",
    "with_rate_limit",
    "with_rate_limit_behavior",
    "with_session",
    "with_timeout",
]
