"""HTTP transport for the OpenPlantbook API.

Usage example:
    import requests

    from openplantbook.infrastructure.http import ApiHttpClient
    from openplantbook.infrastructure.resilience import RateLimitBehavior, TokenBucketRateLimiter

    client = ApiHttpClient(
        session=requests.Session(),
        base_url="https://open.plantbook.io/api/v1",
        rate_limiter=TokenBucketRateLimiter.per_day(200),
        rate_limit_behavior=RateLimitBehavior.BLOCK,
    )
    payload = client.get_bytes("/plant/search", {"alias": "monstera"})
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from urllib.parse import urlsplit

import requests

from .. import __version__
from ..cancellation import CancellationToken
from ..exceptions import (
    ApiError,
    ClientClosedError,
    NotFoundError,
    RateLimitExceededError,
    TransportError,
    UnauthorizedError,
)
from ..observability.logging import NULL_LOGGER
from ..protocols import Logger, RateLimiter
from .resilience import RateLimitBehavior, acquire_permission

USER_AGENT = f"openplantbook-python/{__version__}"
DEFAULT_TIMEOUT_SECONDS = 30.0
_MAX_BODY_CHARS = 300


def default_headers() -> dict[str, str]:
    return {"Accept": "application/json", "User-Agent": USER_AGENT}


def classify_status(status_code: int, endpoint: str, body: str = "") -> ApiError:
    """Map a non-2xx status onto the exception taxonomy."""
    if status_code in (401, 403):
        return UnauthorizedError(status_code, endpoint, body)
    if status_code == 404:
        return NotFoundError(endpoint, body)
    if status_code == 429:
        return RateLimitExceededError(endpoint, body)
    return ApiError(status_code, endpoint, f"HTTP {status_code}", body)


def response_summary(response: requests.Response) -> str:
    """Return a compact body summary for error reporting."""
    try:
        body = response.text
    except (UnicodeDecodeError, ValueError, requests.RequestException):
        return "<unreadable>"
    body = " ".join(body.split())
    if len(body) > _MAX_BODY_CHARS:
        body = body[:_MAX_BODY_CHARS] + "..."
    return body


def _close_abandoned(future: Future[requests.Response]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class ApiHttpClient:
    """Rate-limited, cancellable GET requests against the API.

    Error handling:
    - the rate limiter is consulted before every request, per `rate_limit_behavior`
    - non-2xx responses raise the matching `ApiError` subclass
    - `requests` failures raise `TransportError`
    - calls after `close()` raise `ClientClosedError`
    - a fired cancellation token raises `OperationCancelledError` without waiting
      for the in-flight request to finish
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        base_url: str,
        rate_limiter: RateLimiter | None = None,
        rate_limit_behavior: RateLimitBehavior = RateLimitBehavior.BLOCK,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        logger: Logger = NULL_LOGGER,
        max_workers: int = 8,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter
        self.rate_limit_behavior = rate_limit_behavior
        self.timeout_seconds = timeout_seconds
        self.logger = logger
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="openplantbook-http"
        )
        self._closed = False

    def get_bytes(
        self,
        path: str,
        params: Mapping[str, str] | None = None,
        cancel: CancellationToken | None = None,
    ) -> bytes:
        """Fetch `path` and return the raw body of a 2xx response.

        Raises:
            RateLimitedError: Fail-fast mode with no token available.
            OperationCancelledError: `cancel` fired while waiting.
            ApiError: Any non-2xx response (see `classify_status`).
            TransportError: The request could not be completed.
            ClientClosedError: `close()` has already been called.
        """
        if self._closed:
            raise ClientClosedError()
        acquire_permission(self.rate_limiter, self.rate_limit_behavior, cancel)

        url = self.base_url + path
        endpoint = urlsplit(url).path
        self.logger.debug("sending request", method="GET", endpoint=endpoint)
        response = self._dispatch(url, params, cancel)
        try:
            if not 200 <= response.status_code < 300:
                error = classify_status(response.status_code, endpoint, response_summary(response))
                self.logger.warn(
                    "request failed", endpoint=endpoint, status=response.status_code
                )
                raise error
            return response.content
        finally:
            response.close()

    def close(self) -> None:
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _dispatch(
        self,
        url: str,
        params: Mapping[str, str] | None,
        cancel: CancellationToken | None,
    ) -> requests.Response:
        if cancel is None:
            return self._send(url, params)

        cancel.raise_if_cancelled()
        try:
            future = self._executor.submit(self._send, url, params)
        except RuntimeError as exc:
            raise ClientClosedError() from exc
        finished = threading.Event()
        future.add_done_callback(lambda _: finished.set())
        unregister = cancel.on_cancel(finished.set)
        try:
            finished.wait(cancel.remaining())
        finally:
            unregister()

        if future.done():
            return future.result()
        future.cancel()
        future.add_done_callback(_close_abandoned)
        self.logger.debug("request abandoned", url=url)
        raise cancel.error()

    def _send(self, url: str, params: Mapping[str, str] | None) -> requests.Response:
        try:
            return self.session.get(
                url,
                params=dict(params or {}),
                headers=default_headers(),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc
