"""Tests for PlantbookClient search and detail operations."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import replace

import pytest

from openplantbook import (
    ApiError,
    CancellationToken,
    ClientClosedError,
    DetailOptions,
    InputValidationError,
    NotFoundError,
    OperationCancelledError,
    PlantbookClient,
    PlantDetails,
    PlantSearchResult,
    RateLimitBehavior,
    RateLimitedError,
    ResponseDecodeError,
    SearchOptions,
    UnauthorizedError,
    with_logger,
    with_rate_limit,
    with_rate_limit_behavior,
)
from openplantbook.client import (
    DETAIL_CACHE_TTL_SECONDS,
    SEARCH_CACHE_TTL_SECONDS,
    detail_cache_key,
    search_cache_key,
)
from openplantbook.options import build_config, disable_rate_limit, with_cache, with_session
from tests.fakes import DictCache, FakeRateLimiter, FakeResponse, FakeSession, RecordingLogger

type ClientFactory = Callable[..., PlantbookClient]


class TestSearchPlants:
    def test_returns_results_and_serves_repeat_from_cache(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)

        first = client.search_plants("monstera")
        second = client.search_plants("monstera")

        assert [plant.pid for plant in first] == ["monstera deliciosa", "monstera adansonii"]
        assert first[0] == PlantSearchResult(
            pid="monstera deliciosa",
            display_pid="Monstera deliciosa",
            alias="swiss cheese plant",
            category="Araceae",
        )
        assert second == first
        assert len(fake_session.calls) == 1

    def test_sends_alias_and_optional_params(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)

        client.search_plants("monstera")
        client.search_plants("monstera", SearchOptions(limit=5, user_plants=True))

        plain, tuned = fake_session.calls
        assert plain.url == "https://open.plantbook.io/api/v1/plant/search"
        assert plain.params == {"alias": "monstera"}
        assert tuned.params == {"alias": "monstera", "limit": "5", "userplant": "user"}

    def test_cache_key_includes_options(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        cache = DictCache()
        client = make_client(fake_session, with_cache(cache))

        client.search_plants("monstera", SearchOptions(limit=5))

        assert cache.sets == [("search:monstera:limit=5:userplant=False", SEARCH_CACHE_TTL_SECONDS)]

    def test_empty_query_is_rejected_without_request(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)

        with pytest.raises(InputValidationError) as exc_info:
            client.search_plants("")

        assert exc_info.value.field == "query"
        assert str(exc_info.value) == (
            "search plants: validation failed for query='': query cannot be empty"
        )
        assert fake_session.calls == []

    def test_empty_result_set(self, make_client: ClientFactory) -> None:
        session = FakeSession(
            responses={"/plant/search": FakeResponse.json_body({"count": 0, "results": []})}
        )
        client = make_client(session)

        assert client.search_plants("xyzzy") == []

    def test_null_results_are_an_empty_result_set(self, make_client: ClientFactory) -> None:
        session = FakeSession(
            responses={"/plant/search": FakeResponse.json_body({"count": 0, "results": None})}
        )
        client = make_client(session)

        assert client.search_plants("xyzzy") == []

    def test_server_error_is_not_cached(self, make_client: ClientFactory) -> None:
        session = FakeSession(
            responses={"/plant/search": FakeResponse(status_code=503, content=b"unavailable")}
        )
        cache = DictCache()
        client = make_client(session, with_cache(cache))

        for _ in range(2):
            with pytest.raises(ApiError) as exc_info:
                client.search_plants("monstera")
            assert exc_info.value.operation == "search plants"

        assert cache.sets == []
        assert len(session.calls) == 2

    def test_unauthorised_response(self, make_client: ClientFactory) -> None:
        session = FakeSession(
            responses={"/plant/search": FakeResponse(status_code=401, content=b"{}")}
        )
        client = make_client(session)

        with pytest.raises(UnauthorizedError) as exc_info:
            client.search_plants("monstera")

        assert str(exc_info.value).startswith("search plants: API error (status 401)")

    def test_malformed_body_raises_decode_error(self, make_client: ClientFactory) -> None:
        session = FakeSession(responses={"/plant/search": FakeResponse(content=b"<html>")})
        client = make_client(session)

        with pytest.raises(ResponseDecodeError):
            client.search_plants("monstera")

    def test_undecodable_cache_entry_is_treated_as_miss(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        cache = DictCache()
        cache.set(search_cache_key("monstera", SearchOptions()), b"not json", 60)
        logger = RecordingLogger()
        client = make_client(fake_session, with_cache(cache), with_logger(logger))

        results = client.search_plants("monstera")

        assert len(results) == 2
        assert len(fake_session.calls) == 1
        assert "discarding undecodable cache entry" in logger.messages("warn")


class TestGetPlantDetails:
    def test_returns_details_and_caches_for_a_day(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        cache = DictCache()
        client = make_client(fake_session, with_cache(cache))

        details = client.get_plant_details("monstera deliciosa", DetailOptions(language="de"))
        again = client.get_plant_details("monstera deliciosa", DetailOptions(language="de"))

        assert isinstance(details, PlantDetails)
        assert details.max_light_lux == 20000
        assert details.min_temp == 12.5
        assert details.image_url == "https://example.com/monstera.jpg"
        assert again == details
        assert len(fake_session.calls) == 1
        assert cache.sets == [
            (detail_cache_key("monstera deliciosa", DetailOptions("de")), DETAIL_CACHE_TTL_SECONDS)
        ]

    def test_pid_is_path_escaped_and_language_sent(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)

        client.get_plant_details("monstera deliciosa", DetailOptions(language="en"))

        call = fake_session.calls[0]
        assert call.url == "https://open.plantbook.io/api/v1/plant/detail/monstera%20deliciosa"
        assert call.params == {"lang": "en"}

    def test_no_language_sends_no_params(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)

        client.get_plant_details("monstera deliciosa")

        assert fake_session.calls[0].params == {}

    def test_languages_are_cached_separately(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)

        client.get_plant_details("monstera deliciosa", DetailOptions(language="en"))
        client.get_plant_details("monstera deliciosa", DetailOptions(language="de"))

        assert len(fake_session.calls) == 2

    def test_empty_pid_is_rejected_without_request(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)

        with pytest.raises(InputValidationError) as exc_info:
            client.get_plant_details("")

        assert exc_info.value.field == "pid"
        assert str(exc_info.value).startswith("get plant details: ")
        assert fake_session.calls == []

    def test_unknown_pid_raises_not_found(self, make_client: ClientFactory) -> None:
        session = FakeSession(
            responses={
                "/plant/detail/": FakeResponse.json_body({"detail": "Not found."}, status_code=404)
            }
        )
        client = make_client(session)

        with pytest.raises(NotFoundError) as exc_info:
            client.get_plant_details("no such plant")

        assert exc_info.value.status_code == 404
        assert exc_info.value.operation == "get plant details"

    def test_missing_optional_fields_use_defaults(self, make_client: ClientFactory) -> None:
        session = FakeSession(
            responses={"/plant/detail/": FakeResponse.json_body({"pid": "aloe vera"})}
        )
        client = make_client(session)

        details = client.get_plant_details("aloe vera")

        assert details == PlantDetails(pid="aloe vera")
        assert details.image_url is None


class TestRateLimiting:
    def test_cache_hit_does_not_consume_rate_limit(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(
            fake_session,
            with_rate_limit(1),
            with_rate_limit_behavior(RateLimitBehavior.FAIL_FAST),
        )

        client.search_plants("monstera")
        client.search_plants("monstera")

        with pytest.raises(RateLimitedError) as exc_info:
            client.search_plants("ficus")

        assert exc_info.value.operation == "search plants"
        assert len(fake_session.calls) == 1

    def test_block_behaviour_consults_limiter_per_request(
        self, fake_session: FakeSession
    ) -> None:
        limiter = FakeRateLimiter()
        config = build_config(
            with_session(fake_session),  # type: ignore[arg-type]
            with_cache(DictCache()),
        )
        config = replace(config, rate_limiter=limiter)
        with PlantbookClient(config) as client:
            client.search_plants("monstera")
            client.search_plants("monstera")
            client.get_plant_details("monstera deliciosa")

        assert limiter.wait_calls == 2
        assert limiter.reserve_calls == 0

    def test_disabled_limiter_never_rejects(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(
            fake_session,
            disable_rate_limit(),
            with_rate_limit_behavior(RateLimitBehavior.FAIL_FAST),
        )

        for n in range(5):
            client.search_plants(f"plant {n}")

        assert len(fake_session.calls) == 5


class TestCancellation:
    def test_cancel_interrupts_in_flight_search(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        fake_session.release = threading.Event()
        client = make_client(fake_session)
        token = CancellationToken()
        threading.Timer(0.05, token.cancel).start()

        start = time.monotonic()
        try:
            with pytest.raises(OperationCancelledError) as exc_info:
                client.search_plants("monstera", cancel=token)
            elapsed = time.monotonic() - start
        finally:
            fake_session.release.set()

        assert elapsed < 1.0
        assert exc_info.value.operation == "search plants"

    def test_cancelled_request_is_not_cached(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        fake_session.release = threading.Event()
        cache = DictCache()
        client = make_client(fake_session, with_cache(cache))
        try:
            with pytest.raises(OperationCancelledError, match="deadline exceeded"):
                client.get_plant_details(
                    "monstera deliciosa", cancel=CancellationToken(timeout_seconds=0.05)
                )
        finally:
            fake_session.release.set()

        assert cache.sets == []

    def test_pre_cancelled_token_with_cache_hit_still_returns(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)
        client.search_plants("monstera")
        token = CancellationToken()
        token.cancel()

        assert len(client.search_plants("monstera", cancel=token)) == 2


class TestLifecycle:
    def test_close_leaves_caller_owned_resources_open(self, fake_session: FakeSession) -> None:
        config = build_config(
            with_session(fake_session),  # type: ignore[arg-type]
            with_cache(DictCache()),
        )
        with PlantbookClient(config):
            pass

        assert fake_session.closed is False
        assert config.owns_cache is False

    def test_operations_after_close_raise_client_closed(self, fake_session: FakeSession) -> None:
        config = build_config(
            with_session(fake_session),  # type: ignore[arg-type]
            with_cache(DictCache()),
        )
        client = PlantbookClient(config)
        client.search_plants("monstera")
        client.close()

        with pytest.raises(ClientClosedError) as exc_info:
            client.search_plants("monstera")
        assert str(exc_info.value) == "search plants: client is closed"

        with pytest.raises(ClientClosedError) as exc_info:
            client.get_plant_details("monstera deliciosa", cancel=CancellationToken())
        assert exc_info.value.operation == "get plant details"
        assert len(fake_session.calls) == 1

    def test_concurrent_searches_share_cache(
        self, fake_session: FakeSession, make_client: ClientFactory
    ) -> None:
        client = make_client(fake_session)
        client.search_plants("monstera")
        errors: list[BaseException] = []

        def search() -> None:
            try:
                assert len(client.search_plants("monstera")) == 2
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=search) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(fake_session.calls) == 1
