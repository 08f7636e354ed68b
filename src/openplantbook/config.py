"""Environment-driven settings for the command-line front-end."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .infrastructure.http import DEFAULT_TIMEOUT_SECONDS
from .infrastructure.resilience import RateLimitBehavior
from .options import (
    DEFAULT_BASE_URL,
    ClientOption,
    with_api_key,
    with_base_url,
    with_oauth2,
    with_rate_limit,
    with_rate_limit_behavior,
    with_timeout,
)


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class PositiveNumberEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


class BooleanEnvVarError(ValueError):
    """Raised when an environment variable must be a supported boolean."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a boolean value (true/false, 1/0, yes/no, on/off).")


class RateLimitBehaviorEnvVarError(ValueError):
    """Raised when the rate limit behaviour is not recognised."""

    def __init__(self, env_name: str) -> None:
        choices = ", ".join(behavior.value for behavior in RateLimitBehavior)
        super().__init__(f"{env_name} must be one of: {choices}.")


class MissingCredentialsError(ValueError):
    """Raised when no usable credentials are present in the environment."""

    def __init__(self) -> None:
        super().__init__(
            "No authentication provided: set OPENPLANTBOOK_API_KEY or "
            "OPENPLANTBOOK_CLIENT_ID/OPENPLANTBOOK_CLIENT_SECRET."
        )


@dataclass(frozen=True)
class PlantbookSettings:
    """Immutable CLI settings.

    Load from environment with `PlantbookSettings.from_env()` or construct directly
    for testing.
    """

    api_key: str = ""
    client_id: str = ""
    client_secret: str = ""
    base_url: str = ""
    debug: bool = False
    rate_limit: int | None = None
    rate_limit_behavior: RateLimitBehavior = RateLimitBehavior.BLOCK
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load settings from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            PlantbookSettings instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            api_key=os.getenv("OPENPLANTBOOK_API_KEY", "").strip(),
            client_id=os.getenv("OPENPLANTBOOK_CLIENT_ID", "").strip(),
            client_secret=os.getenv("OPENPLANTBOOK_CLIENT_SECRET", "").strip(),
            base_url=os.getenv("OPENPLANTBOOK_BASE_URL", "").strip(),
            debug=_parse_optional_bool(
                os.getenv("OPENPLANTBOOK_DEBUG", ""), env_name="OPENPLANTBOOK_DEBUG"
            )
            or False,
            rate_limit=_parse_optional_positive_int(
                os.getenv("OPENPLANTBOOK_RATE_LIMIT", ""), env_name="OPENPLANTBOOK_RATE_LIMIT"
            ),
            rate_limit_behavior=_parse_rate_limit_behavior(
                os.getenv("OPENPLANTBOOK_RATE_LIMIT_BEHAVIOR", ""),
                env_name="OPENPLANTBOOK_RATE_LIMIT_BEHAVIOR",
            ),
            timeout_seconds=_parse_optional_positive_float(
                os.getenv("OPENPLANTBOOK_TIMEOUT_SECONDS", ""),
                env_name="OPENPLANTBOOK_TIMEOUT_SECONDS",
            )
            or DEFAULT_TIMEOUT_SECONDS,
        )

    def with_overrides(self, *, debug: bool | None = None) -> Self:
        """Return new settings with specified overrides (for CLI options)."""
        return replace(self, debug=self.debug if debug is None else debug)

    def client_options(self) -> list[ClientOption]:
        """Translate settings into client construction options.

        The API key wins when both credential schemes are present; the client
        itself would reject the combination.

        Raises:
            MissingCredentialsError: If neither scheme is fully configured.
        """
        options: list[ClientOption] = []
        if self.api_key:
            options.append(with_api_key(self.api_key))
        elif self.client_id and self.client_secret:
            options.append(with_oauth2(self.client_id, self.client_secret))
        else:
            raise MissingCredentialsError()

        options.append(with_base_url(self.base_url or DEFAULT_BASE_URL))
        if self.rate_limit is not None:
            options.append(with_rate_limit(self.rate_limit))
        options.append(with_rate_limit_behavior(self.rate_limit_behavior))
        options.append(with_timeout(self.timeout_seconds))
        return options


def _parse_optional_positive_int(value: str, *, env_name: str) -> int | None:
    """Parse an optional positive integer from an environment variable."""
    text = value.strip()
    if not text:
        return None
    try:
        parsed = int(text)
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_positive_float(value: str, *, env_name: str) -> float | None:
    text = value.strip()
    if not text:
        return None
    try:
        parsed = float(text)
    except ValueError as exc:
        raise PositiveNumberEnvVarError(env_name) from exc
    if parsed <= 0:
        raise PositiveNumberEnvVarError(env_name)
    return parsed


def _parse_optional_bool(value: str, *, env_name: str) -> bool | None:
    """Parse an optional boolean from an environment variable."""
    text = value.strip().lower()
    if not text:
        return None
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    raise BooleanEnvVarError(env_name)


def _parse_rate_limit_behavior(value: str, *, env_name: str) -> RateLimitBehavior:
    text = value.strip().lower()
    if not text:
        return RateLimitBehavior.BLOCK
    try:
        return RateLimitBehavior(text)
    except ValueError as exc:
        raise RateLimitBehaviorEnvVarError(env_name) from exc
