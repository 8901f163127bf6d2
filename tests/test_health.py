"""Tests for /api/health, /api/ready and /api/metrics."""

from __future__ import annotations

import re

import httpx

from conftest import SAMPLE_POINTS
from geogateway import __version__
from geogateway.services.downstream import DownstreamClient, DownstreamTimeout
from geogateway.services.health import HealthReporter
from geogateway.services.metrics import metrics

ISO_Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


# ---------------------------------------------------------------------------
# /api/health
# ---------------------------------------------------------------------------


async def test_health_when_downstream_reachable(client, geo_service):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert ISO_Z.match(body["timestamp"])
    assert body["services"]["api-gateway"] == {"status": "healthy", "version": __version__}
    python = body["services"]["python-service"]
    assert python["status"] == "healthy"
    assert python["service"] == "python-fastapi"
    assert ISO_Z.match(python["timestamp"])
    assert len(geo_service.health_calls) == 1


async def test_health_when_downstream_unreachable(client, geo_service):
    geo_service.health_handler = _refuse
    resp = await client.get("/api/health")
    assert resp.status_code == 503
    body = resp.json()
    assert body["statusCode"] == 503
    assert body["path"] == "/api/health"
    assert body["method"] == "GET"
    assert body["status"] == "unhealthy"
    assert body["services"]["api-gateway"]["status"] == "healthy"
    assert body["services"]["python-service"]["status"] == "unhealthy"
    assert body["services"]["python-service"]["error"] == "Service unavailable"
    assert "Connection refused" not in resp.text


async def test_health_when_downstream_returns_error_status(client, geo_service):
    geo_service.health_handler = lambda request: httpx.Response(500)
    resp = await client.get("/api/health")
    assert resp.status_code == 503
    assert resp.json()["services"]["python-service"]["status"] == "unhealthy"


async def test_health_never_touches_cache(client, cache):
    await client.get("/api/health")
    assert cache.size == 0
    assert metrics.cache_hits == 0
    assert metrics.cache_misses == 0


# ---------------------------------------------------------------------------
# /api/ready
# ---------------------------------------------------------------------------


async def test_ready_without_downstream(client, geo_service):
    geo_service.health_handler = _refuse
    geo_service.process_handler = _refuse
    resp = await client.get("/api/ready")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ready"
    assert ISO_Z.match(body["timestamp"])
    assert geo_service.requests == []


# ---------------------------------------------------------------------------
# /api/metrics
# ---------------------------------------------------------------------------


async def test_metrics_reports_cache_and_downstream(client):
    await client.post("/api/geo/process-points", json={"points": SAMPLE_POINTS})
    await client.post("/api/geo/process-points", json={"points": SAMPLE_POINTS})

    resp = await client.get("/api/metrics")
    assert resp.status_code == 200
    data = resp.json()
    assert data["cache"]["hits"] == 1
    assert data["cache"]["misses"] == 1
    assert data["cache"]["size"] == 1
    assert data["cache"]["max_size"] == 100
    assert data["downstream"]["ok"] == 1
    assert data["total_requests"] >= 2
    assert "p50" in data["latency_ms"]


# ---------------------------------------------------------------------------
# HealthReporter
# ---------------------------------------------------------------------------


class _FailingProbe:
    async def probe_health(self) -> None:
        raise DownstreamTimeout("probe timed out")


async def test_reporter_unhealthy_on_timeout():
    reporter = HealthReporter(_FailingProbe(), version="9.9.9")
    status = await reporter.check_health()
    assert not status.healthy
    body = status.to_body()
    assert body["error"] == "One or more services are unavailable"
    assert body["services"]["api-gateway"] == {"status": "healthy", "version": "9.9.9"}
    assert metrics.health_probe_failures == 1


async def test_reporter_healthy_body_has_no_error_keys():
    client = DownstreamClient(
        base_url="http://geo.test",
        transport=httpx.MockTransport(lambda r: httpx.Response(200)),
    )
    async with client:
        status = await HealthReporter(client, version="1.0.0").check_health()
    body = status.to_body()
    assert status.healthy
    assert "error" not in body
    assert "error" not in body["services"]["python-service"]


def test_ready_payload():
    reporter = HealthReporter(_FailingProbe(), version="1.0.0")
    ready = reporter.ready()
    assert ready.status == "ready"
    assert ISO_Z.match(ready.timestamp)
