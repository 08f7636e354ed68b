"""OpenPlantbook API client.

Each operation runs the same pipeline: validate input, check the cache, take a
rate-limiter permission, send the request, classify failures or decode the
body, then cache the decoded result.

Usage example:
    from openplantbook.client import create_client
    from openplantbook.models import SearchOptions
    from openplantbook.options import with_api_key

    with create_client(with_api_key("your-api-key")) as client:
        plants = client.search_plants("monstera", SearchOptions(limit=5))
        details = client.get_plant_details(plants[0].pid)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Self
from urllib.parse import quote

from .cancellation import CancellationToken
from .exceptions import (
    ClientClosedError,
    InputValidationError,
    PlantbookError,
    ResponseDecodeError,
)
from .infrastructure.http import ApiHttpClient
from .infrastructure.validation import IncomingDataError, dump_json_as, validate_json_as
from .models import DetailOptions, PlantDetails, PlantSearchResult, SearchOptions, SearchResponse
from .options import ClientConfig, ClientOption, build_config

SEARCH_PATH = "/plant/search"
DETAIL_PATH = "/plant/detail/"
SEARCH_CACHE_TTL_SECONDS = 60 * 60
DETAIL_CACHE_TTL_SECONDS = 24 * 60 * 60


def search_cache_key(query: str, options: SearchOptions) -> str:
    return f"search:{query}:limit={options.limit}:userplant={options.user_plants}"


def detail_cache_key(pid: str, options: DetailOptions) -> str:
    return f"detail:{pid}:lang={options.language}"


@contextmanager
def _operation(name: str) -> Iterator[None]:
    """Tag any client error escaping the block with the operation name."""
    try:
        yield
    except PlantbookError as exc:
        if exc.operation is None:
            exc.operation = name
        raise


class PlantbookClient:
    """Thread-safe client for the OpenPlantbook search and detail endpoints."""

    def __init__(self, config: ClientConfig) -> None:
        self.config = config
        self.cache = config.cache
        self.logger = config.logger
        self._http = ApiHttpClient(
            session=config.session,
            base_url=config.base_url,
            rate_limiter=config.rate_limiter,
            rate_limit_behavior=config.rate_limit_behavior,
            timeout_seconds=config.timeout_seconds,
            logger=config.logger,
        )
        self._closed = False

    def search_plants(
        self,
        query: str,
        options: SearchOptions | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[PlantSearchResult]:
        """Search plants by alias or common name.

        Results are cached for one hour per query and options.

        Raises:
            InputValidationError: If `query` is empty.
            PlantbookError: Any other failure; see `openplantbook.exceptions`.
        """
        with _operation("search plants"):
            self._ensure_open()
            if not query:
                raise InputValidationError("query cannot be empty", field="query", value=query)
            options = options or SearchOptions()
            cache_key = search_cache_key(query, options)

            cached = self._from_cache(cache_key, list[PlantSearchResult])
            if cached is not None:
                self.logger.debug("cache hit for search", query=query)
                return cached

            params = {"alias": query}
            if options.limit > 0:
                params["limit"] = str(options.limit)
            if options.user_plants:
                params["userplant"] = "user"

            payload = self._http.get_bytes(SEARCH_PATH, params, cancel)
            response = self._decode(payload, SearchResponse, SEARCH_PATH)
            results = list(response.results)
            self.logger.debug("search completed", query=query, results=len(results))

            self._to_cache(
                cache_key, list[PlantSearchResult], results, SEARCH_CACHE_TTL_SECONDS
            )
            return results

    def get_plant_details(
        self,
        pid: str,
        options: DetailOptions | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> PlantDetails:
        """Fetch care ranges for the plant identified by `pid`.

        Details are cached for 24 hours per pid and language.

        Raises:
            InputValidationError: If `pid` is empty.
            NotFoundError: If no plant has this pid.
            PlantbookError: Any other failure; see `openplantbook.exceptions`.
        """
        with _operation("get plant details"):
            self._ensure_open()
            if not pid:
                raise InputValidationError("pid cannot be empty", field="pid", value=pid)
            options = options or DetailOptions()
            cache_key = detail_cache_key(pid, options)

            cached = self._from_cache(cache_key, PlantDetails)
            if cached is not None:
                self.logger.debug("cache hit for details", pid=pid)
                return cached

            params = {"lang": options.language} if options.language else {}
            path = DETAIL_PATH + quote(pid, safe="")
            payload = self._http.get_bytes(path, params, cancel)
            details = self._decode(payload, PlantDetails, path)
            self.logger.debug("details retrieved", pid=pid)

            self._to_cache(cache_key, PlantDetails, details, DETAIL_CACHE_TTL_SECONDS)
            return details

    def close(self) -> None:
        """Release the dispatch threads and any cache or session this client created.

        Operations started afterwards raise `ClientClosedError`.
        """
        self._closed = True
        self._http.close()
        if self.config.owns_cache:
            close = getattr(self.cache, "close", None)
            if callable(close):
                close()
        if self.config.owns_session:
            self.config.session.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientClosedError()

    def _from_cache[SchemaT](self, key: str, schema: type[SchemaT]) -> SchemaT | None:
        payload = self.cache.get(key)
        if payload is None:
            return None
        try:
            return validate_json_as(schema, payload)
        except IncomingDataError:
            self.logger.warn("discarding undecodable cache entry", key=key)
            return None

    def _to_cache[SchemaT](
        self, key: str, schema: type[SchemaT], value: SchemaT, ttl_seconds: float
    ) -> None:
        self.cache.set(key, dump_json_as(schema, value), ttl_seconds)

    def _decode[SchemaT](self, payload: bytes, schema: type[SchemaT], path: str) -> SchemaT:
        try:
            return validate_json_as(schema, payload)
        except IncomingDataError as exc:
            raise ResponseDecodeError(path) from exc


def create_client(*options: ClientOption) -> PlantbookClient:
    """Build a client from construction options.

    Raises:
        ConfigError: If the options are invalid; see `openplantbook.options`.
    """
    return PlantbookClient(build_config(*options))
