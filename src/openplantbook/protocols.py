"""Protocol definitions for dependency injection.

These protocols define the capabilities the client depends on. Any object with
matching methods can be plugged in; no inheritance is required.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .cancellation import CancellationToken


@runtime_checkable
class Cache(Protocol):
    """Abstract cache for serialised API responses."""

    def get(self, key: str) -> bytes | None:
        """Return the cached payload, or None if absent or expired."""
        ...

    def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        """Store a payload that expires after `ttl_seconds`."""
        ...

    def delete(self, key: str) -> None:
        """Remove a single entry."""
        ...

    def clear(self) -> None:
        """Remove all entries."""
        ...


@runtime_checkable
class Reservation(Protocol):
    """A claim on one rate-limiter token."""

    ok: bool
    delay_seconds: float

    def cancel(self) -> None:
        """Return the claimed token to the limiter."""
        ...


@runtime_checkable
class RateLimiter(Protocol):
    """Abstract rate limiter for outbound requests."""

    def reserve(self) -> Reservation:
        """Claim a token without waiting."""
        ...

    def wait(self, cancel: CancellationToken | None = None) -> None:
        """Block until a request is allowed or `cancel` fires."""
        ...


@runtime_checkable
class Logger(Protocol):
    """Structured logger with four severities.

    Keyword arguments are structured fields attached to the message.
    """

    def debug(self, msg: str, **fields: object) -> None: ...

    def info(self, msg: str, **fields: object) -> None: ...

    def warn(self, msg: str, **fields: object) -> None: ...

    def error(self, msg: str, **fields: object) -> None: ...
