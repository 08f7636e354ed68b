"""Concrete infrastructure implementations and shared helpers."""

from .auth import AuthMode, ClientCredentialsAuth, TokenAuth, resolve_session
from .cache import InMemoryCache, NoOpCache
from .http import ApiHttpClient, classify_status
from .resilience import (
    RateLimitBehavior,
    TokenBucketRateLimiter,
    TokenReservation,
    acquire_permission,
)

__all__ = [
    "ApiHttpClient",
    "AuthMode",
    "ClientCredentialsAuth",
    "InMemoryCache",
    "NoOpCache",
    "RateLimitBehavior",
    "TokenAuth",
    "TokenBucketRateLimiter",
    "TokenReservation",
    "acquire_permission",
    "classify_status",
    "resolve_session",
]
