"""Custom exceptions for the OpenPlantbook client.

Every failure raised by the client derives from `PlantbookError`, so callers can
branch on the class rather than on message text:

    try:
        details = client.get_plant_details("monstera deliciosa")
    except NotFoundError:
        ...
    except RateLimitedError as exc:
        schedule_retry(exc.retry_after)
"""

from __future__ import annotations

from datetime import datetime


class PlantbookError(Exception):
    """Base exception for all client errors.

    The pipeline records the failing operation on the way out, and the string form
    becomes "<operation>: <message>".
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.operation: str | None = None

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class ApiError(PlantbookError):
    """Raised for a non-2xx response from the OpenPlantbook API."""

    def __init__(
        self,
        status_code: int,
        endpoint: str,
        message: str | None = None,
        body: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body
        detail = message or f"HTTP {status_code}"
        super().__init__(f"API error (status {status_code}) at {endpoint}: {detail}")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class UnauthorizedError(ApiError):
    """Raised on 401/403: invalid credentials or an expired token."""

    def __init__(self, status_code: int, endpoint: str, body: str = "") -> None:
        super().__init__(status_code, endpoint, "authentication failed", body)


class NotFoundError(ApiError):
    """Raised on 404: the requested plant does not exist."""

    def __init__(self, endpoint: str, body: str = "") -> None:
        super().__init__(404, endpoint, "resource not found", body)


class RateLimitExceededError(ApiError):
    """Raised on 429: the server reports the daily quota is exhausted."""

    def __init__(self, endpoint: str, body: str = "") -> None:
        super().__init__(429, endpoint, "rate limit exceeded", body)


class RateLimitedError(PlantbookError):
    """Raised by the client-side rate limiter in fail-fast mode.

    Unlike `RateLimitExceededError`, no request reached the server.
    """

    def __init__(self, retry_after: datetime, message: str = "rate limit exceeded") -> None:
        self.retry_after = retry_after
        super().__init__(f"{message} (retry after {retry_after.isoformat(timespec='seconds')})")


class InputValidationError(PlantbookError):
    """Raised when caller-supplied input is malformed."""

    def __init__(self, message: str, *, field: str = "", value: object = None) -> None:
        self.field = field
        self.value = value
        if field:
            super().__init__(f"validation failed for {field}={value!r}: {message}")
        else:
            super().__init__(f"validation failed: {message}")


class ConfigError(PlantbookError):
    """Raised when the client is misconfigured at construction time."""

    def __init__(self, message: str) -> None:
        super().__init__(f"configuration error: {message}")


class MultipleAuthMethodsError(ConfigError):
    """Raised when both an API key and OAuth2 credentials are configured."""

    def __init__(self) -> None:
        super().__init__(
            "multiple authentication methods provided (use only API key OR OAuth2)"
        )


class NoAuthProvidedError(ConfigError):
    """Raised when neither an API key nor OAuth2 credentials are configured."""

    def __init__(self) -> None:
        super().__init__("no authentication provided (use with_api_key or with_oauth2)")


class OperationCancelledError(PlantbookError):
    """Raised when the caller's cancellation token fires mid-operation."""

    def __init__(self, reason: str = "operation cancelled") -> None:
        self.reason = reason
        super().__init__(reason)


class TransportError(PlantbookError):
    """Raised when the HTTP request could not be completed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"HTTP request failed: {detail}")


class ResponseDecodeError(PlantbookError):
    """Raised when a successful response body does not match the expected shape."""

    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint
        super().__init__(f"decode response from {endpoint}: unexpected payload")


class ClientClosedError(PlantbookError):
    """Raised when an operation is started on a client that has been closed."""

    def __init__(self) -> None:
        super().__init__("client is closed")
