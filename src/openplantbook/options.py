"""Construction options for `PlantbookClient`.

Options are applied in order to a draft pre-seeded with defaults; the first
invalid option raises `ConfigError`. Checks spanning several options (exactly one
authentication method) run once, after all options are applied.

Usage example:
    from openplantbook.options import build_config, with_api_key, with_rate_limit

    config = build_config(with_api_key("your-api-key"), with_rate_limit(100))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import requests

from .exceptions import ConfigError
from .infrastructure.auth import AuthMode, resolve_session
from .infrastructure.cache import InMemoryCache
from .infrastructure.http import DEFAULT_TIMEOUT_SECONDS
from .infrastructure.resilience import (
    DEFAULT_REQUESTS_PER_DAY,
    RateLimitBehavior,
    TokenBucketRateLimiter,
)
from .observability.logging import NULL_LOGGER
from .protocols import Cache, Logger, RateLimiter

DEFAULT_BASE_URL = "https://open.plantbook.io/api/v1"


@dataclass
class ClientDraft:
    """Mutable configuration that options write into."""

    api_key: str = ""
    client_id: str = ""
    client_secret: str = ""
    base_url: str = DEFAULT_BASE_URL
    session: requests.Session | None = None
    cache: Cache | None = None
    rate_limiter: RateLimiter | None = field(
        default_factory=lambda: TokenBucketRateLimiter.per_day(DEFAULT_REQUESTS_PER_DAY)
    )
    logger: Logger = NULL_LOGGER
    rate_limit_behavior: RateLimitBehavior = RateLimitBehavior.BLOCK
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class ClientConfig:
    """Validated, read-only client configuration."""

    base_url: str
    auth_mode: AuthMode
    session: requests.Session
    cache: Cache
    rate_limiter: RateLimiter | None
    logger: Logger
    rate_limit_behavior: RateLimitBehavior
    timeout_seconds: float
    owns_session: bool
    owns_cache: bool


type ClientOption = Callable[[ClientDraft], None]


def with_api_key(api_key: str) -> ClientOption:
    """Authenticate with a static API key (read-only endpoints)."""

    def apply(draft: ClientDraft) -> None:
        if not api_key:
            raise ConfigError("API key cannot be empty")
        draft.api_key = api_key

    return apply


def with_oauth2(client_id: str, client_secret: str) -> ClientOption:
    """Authenticate with OAuth2 client credentials (full API access)."""

    def apply(draft: ClientDraft) -> None:
        if not client_id or not client_secret:
            raise ConfigError("client_id and client_secret cannot be empty")
        draft.client_id = client_id
        draft.client_secret = client_secret

    return apply


def with_base_url(base_url: str) -> ClientOption:
    def apply(draft: ClientDraft) -> None:
        if not base_url:
            raise ConfigError("base URL cannot be empty")
        draft.base_url = base_url.rstrip("/")

    return apply


def with_session(session: requests.Session | None) -> ClientOption:
    """Use a caller-supplied session.

    The session is used as-is: API key and OAuth2 settings are ignored, so the
    session must carry its own authentication.
    """

    def apply(draft: ClientDraft) -> None:
        if session is None:
            raise ConfigError("HTTP session cannot be None")
        draft.session = session

    return apply


def with_cache(cache: Cache | None) -> ClientOption:
    def apply(draft: ClientDraft) -> None:
        if cache is None:
            raise ConfigError("cache cannot be None")
        draft.cache = cache

    return apply


def with_rate_limit(requests_per_day: int) -> ClientOption:
    """Replace the default limiter with one allowing `requests_per_day`."""

    def apply(draft: ClientDraft) -> None:
        if requests_per_day <= 0:
            raise ConfigError("rate limit must be positive")
        draft.rate_limiter = TokenBucketRateLimiter.per_day(requests_per_day)

    return apply


def disable_rate_limit() -> ClientOption:
    """Turn off client-side rate limiting (use with caution)."""

    def apply(draft: ClientDraft) -> None:
        draft.rate_limiter = None

    return apply


def with_logger(logger: Logger | None) -> ClientOption:
    def apply(draft: ClientDraft) -> None:
        draft.logger = logger or NULL_LOGGER

    return apply


def with_rate_limit_behavior(behavior: RateLimitBehavior | str) -> ClientOption:
    """Choose between blocking until a token is free and failing fast."""

    def apply(draft: ClientDraft) -> None:
        try:
            draft.rate_limit_behavior = RateLimitBehavior(behavior)
        except ValueError as exc:
            raise ConfigError(f"unknown rate limit behavior: {behavior!r}") from exc

    return apply


def with_timeout(timeout_seconds: float) -> ClientOption:
    """Per-request network timeout."""

    def apply(draft: ClientDraft) -> None:
        if timeout_seconds <= 0:
            raise ConfigError("timeout must be positive")
        draft.timeout_seconds = timeout_seconds

    return apply


def build_config(*options: ClientOption) -> ClientConfig:
    """Apply `options` to a default draft and validate the result.

    Raises:
        ConfigError: If any option is invalid or the combination is inconsistent.
    """
    draft = ClientDraft()
    for option in options:
        option(draft)

    if not draft.base_url:
        raise ConfigError("base URL cannot be empty")

    session, auth_mode = resolve_session(
        base_url=draft.base_url,
        api_key=draft.api_key,
        client_id=draft.client_id,
        client_secret=draft.client_secret,
        session=draft.session,
        timeout_seconds=draft.timeout_seconds,
        logger=draft.logger,
    )
    owns_cache = draft.cache is None
    return ClientConfig(
        base_url=draft.base_url,
        auth_mode=auth_mode,
        session=session,
        cache=InMemoryCache() if draft.cache is None else draft.cache,
        rate_limiter=draft.rate_limiter,
        logger=draft.logger,
        rate_limit_behavior=draft.rate_limit_behavior,
        timeout_seconds=draft.timeout_seconds,
        owns_session=draft.session is None,
        owns_cache=owns_cache,
    )
