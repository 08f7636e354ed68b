"""Resilience utilities for infrastructure.

Usage example:
    from openplantbook.infrastructure.resilience import (
        RateLimitBehavior,
        TokenBucketRateLimiter,
        acquire_permission,
    )

    rate_limiter = TokenBucketRateLimiter.per_day(200)
    acquire_permission(rate_limiter, RateLimitBehavior.FAIL_FAST)
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Self, override

from ..cancellation import CancellationToken
from ..exceptions import OperationCancelledError, RateLimitedError
from ..protocols import RateLimiter as RateLimiterProtocol
from ..protocols import Reservation as ReservationProtocol

SECONDS_PER_DAY = 24 * 60 * 60
DEFAULT_REQUESTS_PER_DAY = 200
EXHAUSTED_RETRY_AFTER = timedelta(hours=24)


class RateLimitBehavior(StrEnum):
    """How the client reacts when the rate limiter has no token available."""

    BLOCK = "block"
    FAIL_FAST = "fail-fast"


@dataclass
class TokenReservation(ReservationProtocol):
    """A token claimed from a `TokenBucketRateLimiter`."""

    ok: bool
    delay_seconds: float
    limiter: TokenBucketRateLimiter | None = field(default=None, repr=False)
    cancelled: bool = field(default=False, init=False)

    @override
    def cancel(self) -> None:
        if not self.ok or self.cancelled or self.limiter is None:
            return
        self.cancelled = True
        self.limiter.restore_token()


@dataclass
class TokenBucketRateLimiter(RateLimiterProtocol):
    """Token bucket refilled at one token per `interval_seconds`.

    Reservations may drive the bucket negative; the deficit is the wait owed by
    the reserving caller.
    """

    interval_seconds: float
    burst: int = 1
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    tokens: float = field(init=False)
    last_update: float = field(init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.tokens = float(self.burst)
        self.last_update = self.clock()

    @classmethod
    def per_day(cls, requests_per_day: int = DEFAULT_REQUESTS_PER_DAY) -> Self:
        return cls(interval_seconds=SECONDS_PER_DAY / requests_per_day)

    @override
    def reserve(self) -> TokenReservation:
        with self._lock:
            if self.burst <= 0:
                return TokenReservation(ok=False, delay_seconds=0.0)
            self._advance(self.clock())
            self.tokens -= 1
            delay = 0.0 if self.tokens >= 0 else -self.tokens * self.interval_seconds
            return TokenReservation(ok=True, delay_seconds=delay, limiter=self)

    @override
    def wait(self, cancel: CancellationToken | None = None) -> None:
        """Block until a token is available.

        Raises:
            OperationCancelledError: If `cancel` fires, or its deadline falls before
                the token would be available. The token is returned in both cases.
            RateLimitedError: If the limiter can never grant a token.
        """
        if cancel is not None:
            cancel.raise_if_cancelled()
        reservation = self.reserve()
        if not reservation.ok:
            raise RateLimitedError(
                datetime.now(UTC) + EXHAUSTED_RETRY_AFTER, "rate limiter exhausted"
            )
        delay = reservation.delay_seconds
        if delay <= 0:
            return
        if cancel is None:
            time.sleep(delay)
            return
        remaining = cancel.remaining()
        if remaining is not None and remaining < delay:
            reservation.cancel()
            raise OperationCancelledError("rate limit wait would exceed deadline")
        if cancel.wait(delay):
            reservation.cancel()
            raise cancel.error()

    def restore_token(self) -> None:
        with self._lock:
            self._advance(self.clock())
            self.tokens = min(float(self.burst), self.tokens + 1)

    def _advance(self, now: float) -> None:
        elapsed = max(0.0, now - self.last_update)
        self.tokens = min(float(self.burst), self.tokens + elapsed / self.interval_seconds)
        self.last_update = now


def acquire_permission(
    rate_limiter: RateLimiterProtocol | None,
    behavior: RateLimitBehavior,
    cancel: CancellationToken | None = None,
) -> None:
    """Consume one request permission according to `behavior`.

    A `None` limiter means rate limiting is disabled and every call proceeds.

    Raises:
        RateLimitedError: In fail-fast mode when no token is available now.
        OperationCancelledError: In block mode when `cancel` fires while waiting.
    """
    if rate_limiter is None:
        return
    if behavior is RateLimitBehavior.BLOCK:
        rate_limiter.wait(cancel)
        return

    reservation = rate_limiter.reserve()
    if not reservation.ok:
        raise RateLimitedError(datetime.now(UTC) + EXHAUSTED_RETRY_AFTER, "rate limiter exhausted")
    if reservation.delay_seconds > 0:
        reservation.cancel()
        raise RateLimitedError(
            datetime.now(UTC) + timedelta(seconds=reservation.delay_seconds),
            "rate limit exceeded, please retry later",
        )
