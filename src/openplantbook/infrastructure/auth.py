"""Authentication for outbound API requests.

Usage example:
    from openplantbook.infrastructure.auth import resolve_session

    session, mode = resolve_session(
        base_url="https://open.plantbook.io/api/v1",
        api_key="your-api-key",
    )
"""

from __future__ import annotations

import threading
import time
from enum import StrEnum
from urllib.parse import urlsplit

import requests
from oauthlib.oauth2 import (
    BackendApplicationClient,
    InvalidClientError,
    OAuth2Error,
    UnauthorizedClientError,
)
from oauthlib.oauth2.rfc6749.utils import is_secure_transport
from requests.auth import AuthBase
from requests_oauthlib import OAuth2Session

from ..exceptions import (
    ConfigError,
    MultipleAuthMethodsError,
    NoAuthProvidedError,
    PlantbookError,
    ResponseDecodeError,
    TransportError,
    UnauthorizedError,
)
from ..observability.logging import NULL_LOGGER
from ..protocols import Logger
from .http import DEFAULT_TIMEOUT_SECONDS, classify_status, response_summary

TOKEN_PATH = "/token/"
TOKEN_EXPIRY_LEEWAY_SECONDS = 30.0


class AuthMode(StrEnum):
    """Authentication scheme in effect for a client."""

    API_KEY = "api_key"
    OAUTH2 = "oauth2"
    CUSTOM_SESSION = "custom_session"


class TokenAuth(AuthBase):
    """Attach `Authorization: Token <key>` to every request."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r = r.copy()
        r.headers["Authorization"] = f"Token {self.api_key}"
        return r


class ClientCredentialsAuth(AuthBase):
    """Attach an OAuth2 bearer token obtained with the client-credentials grant.

    The token is fetched on first use and fetched again shortly before it expires.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        token_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        oauth_session: OAuth2Session | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.timeout_seconds = timeout_seconds
        self._oauth = oauth_session or OAuth2Session(
            client=BackendApplicationClient(client_id=client_id)
        )
        self._oauth.register_compliance_hook("access_token_response", self._record_response)
        self._token: dict[str, object] | None = None
        self._token_response: requests.Response | None = None
        self._lock = threading.Lock()

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r = r.copy()
        r.headers["Authorization"] = f"Bearer {self.access_token()}"
        return r

    def access_token(self) -> str:
        """Return a valid access token, fetching a new one when needed.

        Raises:
            UnauthorizedError: If the token endpoint rejects the client credentials.
            ApiError: If the token endpoint answers with any other non-2xx status.
            ResponseDecodeError: If a 2xx token response carries no usable token.
            TransportError: If the token request could not be sent.
        """
        with self._lock:
            if self._token is None or self._expired(self._token):
                self._token_response = None
                try:
                    token = self._oauth.fetch_token(
                        token_url=self.token_url,
                        client_id=self.client_id,
                        client_secret=self.client_secret,
                        timeout=self.timeout_seconds,
                    )
                except OAuth2Error as exc:
                    raise self._token_error(exc) from exc
                self._token = dict(token)
            return str(self._token["access_token"])

    def _record_response(self, response: requests.Response) -> requests.Response:
        self._token_response = response
        return response

    def _token_error(self, exc: OAuth2Error) -> PlantbookError:
        """Map a failed token fetch onto the exception taxonomy."""
        endpoint = urlsplit(self.token_url).path
        detail = exc.description or exc.error
        response = self._token_response
        if isinstance(exc, InvalidClientError | UnauthorizedClientError):
            status = response.status_code if response is not None else exc.status_code
            return UnauthorizedError(status if status >= 400 else 401, endpoint, detail)

        if response is None:
            return TransportError(f"token request to {endpoint} failed: {detail}")
        if not 200 <= response.status_code < 300:
            return classify_status(response.status_code, endpoint, response_summary(response))
        return ResponseDecodeError(endpoint)

    @staticmethod
    def _expired(token: dict[str, object]) -> bool:
        expires_at = token.get("expires_at")
        if not isinstance(expires_at, int | float):
            return False
        return time.time() >= expires_at - TOKEN_EXPIRY_LEEWAY_SECONDS


def _session_with_auth(auth: AuthBase) -> requests.Session:
    session = requests.Session()
    session.auth = auth
    return session


def resolve_session(
    *,
    base_url: str,
    api_key: str = "",
    client_id: str = "",
    client_secret: str = "",
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    logger: Logger = NULL_LOGGER,
) -> tuple[requests.Session, AuthMode]:
    """Pick the authentication scheme and build the session that applies it.

    A caller-supplied `session` is used as-is and skips credential checks.
    OAuth2 token requests are sent with `timeout_seconds`.

    Raises:
        MultipleAuthMethodsError: If both an API key and OAuth2 credentials are set.
        NoAuthProvidedError: If neither is set.
        ConfigError: If only half of the OAuth2 credential pair is set, or if OAuth2
            is asked for over plain http while `OAUTHLIB_INSECURE_TRANSPORT` is unset.
    """
    if session is not None:
        logger.debug("using custom HTTP session")
        return session, AuthMode.CUSTOM_SESSION

    has_api_key = bool(api_key)
    has_oauth2 = bool(client_id or client_secret)

    if has_api_key and has_oauth2:
        raise MultipleAuthMethodsError()
    if not has_api_key and not has_oauth2:
        raise NoAuthProvidedError()

    if has_api_key:
        logger.debug("using API key authentication")
        return _session_with_auth(TokenAuth(api_key)), AuthMode.API_KEY

    if not client_id or not client_secret:
        raise ConfigError("both client_id and client_secret required for OAuth2")
    token_url = base_url.rstrip("/") + TOKEN_PATH
    if not is_secure_transport(token_url):
        raise ConfigError("OAuth2 requires an https base URL")
    auth = ClientCredentialsAuth(
        client_id=client_id,
        client_secret=client_secret,
        token_url=token_url,
        timeout_seconds=timeout_seconds,
    )
    logger.debug("using OAuth2 client credentials authentication")
    return _session_with_auth(auth), AuthMode.OAUTH2
