"""Pytest fixtures for testing.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket
from collections.abc import Callable, Iterator

import pytest

from openplantbook.client import PlantbookClient, create_client
from openplantbook.options import ClientOption, disable_rate_limit, with_cache, with_session
from tests.fakes import DictCache, FakeResponse, FakeSession
from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Block all network access in tests.

    This fixture runs automatically for all tests and prevents any real
    network connections. Tests that need HTTP should use FakeSession or
    MagicMock.

    If you need E2E tests with real network access, mark them with:
        @pytest.mark.e2e
    and run them separately with: pytest -m e2e
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
    yield


# =============================================================================
# Canned API payloads
# =============================================================================


@pytest.fixture
def monstera_search_payload() -> dict[str, object]:
    return {
        "count": 2,
        "next": None,
        "previous": None,
        "results": [
            {
                "pid": "monstera deliciosa",
                "display_pid": "Monstera deliciosa",
                "alias": "swiss cheese plant",
                "category": "Araceae",
            },
            {
                "pid": "monstera adansonii",
                "display_pid": "Monstera adansonii",
                "alias": "adanson's monstera",
                "category": "Araceae",
            },
        ],
    }


@pytest.fixture
def monstera_detail_payload() -> dict[str, object]:
    return {
        "pid": "monstera deliciosa",
        "display_pid": "Monstera deliciosa",
        "alias": "swiss cheese plant",
        "max_light_lux": 20000,
        "min_light_lux": 800,
        "max_temp": 32.0,
        "min_temp": 12.5,
        "max_env_humid": 80,
        "min_env_humid": 30,
        "max_soil_moist": 60,
        "min_soil_moist": 15,
        "max_soil_ec": 2000,
        "min_soil_ec": 350,
        "image_url": "https://example.com/monstera.jpg",
        "category": "Araceae",
    }


@pytest.fixture
def fake_session(
    monstera_search_payload: dict[str, object],
    monstera_detail_payload: dict[str, object],
) -> FakeSession:
    return FakeSession(
        responses={
            "/plant/search": FakeResponse.json_body(monstera_search_payload),
            "/plant/detail/": FakeResponse.json_body(monstera_detail_payload),
        }
    )


@pytest.fixture
def make_client() -> Iterator[Callable[..., PlantbookClient]]:
    """Build clients over a fake session; all are closed after the test."""
    clients: list[PlantbookClient] = []

    def build(session: FakeSession, *options: ClientOption) -> PlantbookClient:
        client = create_client(
            with_session(session),  # type: ignore[arg-type]
            with_cache(DictCache()),
            disable_rate_limit(),
            *options,
        )
        clients.append(client)
        return client

    yield build
    for client in clients:
        client.close()
