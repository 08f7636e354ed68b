"""Cache implementations for infrastructure.

Usage example:
    from openplantbook.infrastructure.cache import InMemoryCache

    with InMemoryCache() as cache:
        cache.set("key", b'{"value": 1}', ttl_seconds=3600)
        cached = cache.get("key")
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Self, override

from ..protocols import Cache

DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0


class ReadWriteLock:
    """Lock allowing many concurrent readers or one exclusive writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class _Entry:
    value: bytes
    expires_at: float


class InMemoryCache(Cache):
    """Thread-safe in-memory cache with a background expiry sweep.

    Expired entries are never returned by `get`; the sweep only reclaims memory.
    Call `close()` (or use the cache as a context manager) to stop the sweep thread.
    """

    def __init__(
        self,
        *,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._items: dict[str, _Entry] = {}
        self._lock = ReadWriteLock()
        self._clock = clock
        self._sweep_interval_seconds = sweep_interval_seconds
        self._stop = threading.Event()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            name="openplantbook-cache-sweep",
            daemon=True,
        )
        self._sweeper.start()

    @override
    def get(self, key: str) -> bytes | None:
        with self._lock.read():
            entry = self._items.get(key)
        if entry is None or self._clock() >= entry.expires_at:
            return None
        return entry.value

    @override
    def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        entry = _Entry(value=value, expires_at=self._clock() + ttl_seconds)
        with self._lock.write():
            self._items[key] = entry

    @override
    def delete(self, key: str) -> None:
        with self._lock.write():
            self._items.pop(key, None)

    @override
    def clear(self) -> None:
        with self._lock.write():
            self._items = {}

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._items)

    def remove_expired(self) -> int:
        """Delete every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock.write():
            expired = [key for key, entry in self._items.items() if now >= entry.expires_at]
            for key in expired:
                del self._items[key]
        return len(expired)

    def close(self) -> None:
        """Stop the background sweep."""
        self._stop.set()
        self._sweeper.join(timeout=1.0)

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _sweep_loop(self) -> None:
        # Event.wait returns True once close() is called.
        while not self._stop.wait(self._sweep_interval_seconds):
            self.remove_expired()


class NoOpCache(Cache):
    """Cache that stores nothing; use it to disable caching."""

    @override
    def get(self, key: str) -> bytes | None:
        return None

    @override
    def set(self, key: str, value: bytes, ttl_seconds: float) -> None:
        return None

    @override
    def delete(self, key: str) -> None:
        return None

    @override
    def clear(self) -> None:
        return None
