"""Cooperative cancellation for client operations.

Usage example:
    import threading

    from openplantbook.cancellation import CancellationToken

    token = CancellationToken(timeout_seconds=5.0)
    threading.Timer(1.0, token.cancel).start()
    client.search_plants("monstera", cancel=token)
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from .exceptions import OperationCancelledError


class CancellationToken:
    """Cancellation signal with an optional deadline.

    A token is cancelled either explicitly via `cancel()` or implicitly once its
    deadline passes. Blocking points in the client wait on the token so they can
    return as soon as it fires.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self.deadline = None if timeout_seconds is None else clock() + timeout_seconds

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.deadline_exceeded

    @property
    def deadline_exceeded(self) -> bool:
        return self.deadline is not None and self._clock() >= self.deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def cancel(self) -> None:
        """Cancel the token and fire registered callbacks."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for `cancel()`; returns a function that unregisters it.

        The callback runs immediately if the token is already cancelled.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._discard(callback)
        callback()
        return lambda: None

    def wait(self, seconds: float) -> bool:
        """Sleep for up to `seconds`; return True if the token fired first."""
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._event.wait(remaining)
            return True
        return self._event.wait(seconds)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()
        if self.deadline_exceeded:
            raise OperationCancelledError("deadline exceeded")

    def error(self) -> OperationCancelledError:
        """Return the exception matching why the token fired."""
        if self._event.is_set():
            return OperationCancelledError()
        return OperationCancelledError("deadline exceeded")

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
