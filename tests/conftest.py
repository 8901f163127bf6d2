from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from geogateway.api.main import create_app
from geogateway.config import Settings
from geogateway.services.cache import ResponseCache
from geogateway.services.metrics import metrics

GEO_SERVICE_URL = "http://geo-service.test"

SAMPLE_POINTS = [
    {"lat": 40.7128, "lng": -74.006},
    {"lat": 34.0522, "lng": -118.2437},
]

SAMPLE_RESPONSE = {
    "centroid": {"lat": 37.3825, "lng": -96.12485},
    "bounds": {
        "north": 40.7128,
        "south": 34.0522,
        "east": -74.006,
        "west": -118.2437,
    },
}


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGeoService:
    """``httpx.MockTransport`` handler standing in for the geo service.

    Swap ``process_handler`` / ``health_handler`` to script failures.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.process_handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json=SAMPLE_RESPONSE)
        )
        self.health_handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"status": "ok"})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/health":
            return self.health_handler(request)
        return self.process_handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def process_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/geo/process-points"]

    @property
    def health_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/health"]


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ResponseCache:
    return ResponseCache(maxsize=100, ttl=300, clock=clock)


@pytest.fixture
def geo_service() -> FakeGeoService:
    return FakeGeoService()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, python_service_url=GEO_SERVICE_URL)


@pytest.fixture
def app(settings, geo_service, cache):
    return create_app(settings, transport=geo_service.transport, cache=cache)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await app.state.downstream.aclose()
