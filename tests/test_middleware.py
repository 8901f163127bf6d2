"""Tests for request logging middleware."""

from __future__ import annotations

import logging

from geogateway.api.dependencies import get_processor
from geogateway.services.request_context import get_request_id


class _RecordRequestIds(logging.Handler):
    """Captures the request id bound at the moment each record is emitted."""

    def __init__(self) -> None:
        super().__init__()
        self.seen: list[tuple[str, str]] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.seen.append((record.name, get_request_id()))


class _Exploding:
    async def process(self, raw):
        raise RuntimeError("boom")


async def test_response_time_header_on_success(client):
    resp = await client.get("/api/ready")
    assert "X-Response-Time-Ms" in resp.headers
    float(resp.headers["X-Response-Time-Ms"])


async def test_response_time_header_on_error(client):
    resp = await client.post("/api/geo/process-points", json={"points": []})
    assert resp.status_code == 400
    assert "X-Response-Time-Ms" in resp.headers


async def test_request_id_generated(client):
    resp = await client.get("/api/ready")
    assert len(resp.headers["x-request-id"]) == 32


async def test_request_id_echoed(client):
    resp = await client.get("/api/ready", headers={"x-request-id": "trace-abc-123"})
    assert resp.headers["x-request-id"] == "trace-abc-123"


async def test_access_line_logged(client, caplog):
    with caplog.at_level("INFO", logger="geogateway.access"):
        await client.get("/api/ready")
    access = [r.getMessage() for r in caplog.records if r.name == "geogateway.access"]
    assert len(access) == 1
    assert access[0].startswith("GET /api/ready 200 ")


async def test_cors_preflight_allows_frontend_origin(client):
    resp = await client.options(
        "/api/geo/process-points",
        headers={
            "origin": "http://localhost:3001",
            "access-control-request-method": "POST",
            "access-control-request-headers": "Content-Type",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3001"


async def test_unhandled_error_keeps_request_headers(app, client):
    app.dependency_overrides[get_processor] = lambda: _Exploding()
    try:
        resp = await client.post(
            "/api/geo/process-points",
            json={"points": []},
            headers={"x-request-id": "abc"},
        )
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.headers["x-request-id"] == "abc"
    float(resp.headers["X-Response-Time-Ms"])
    assert resp.json()["message"] == "Internal server error"


async def test_unhandled_error_traceback_logged_with_request_id(app, client):
    handler = _RecordRequestIds()
    errors_logger = logging.getLogger("geogateway.errors")
    errors_logger.addHandler(handler)
    app.dependency_overrides[get_processor] = lambda: _Exploding()
    try:
        await client.post(
            "/api/geo/process-points",
            json={"points": []},
            headers={"x-request-id": "trace-500"},
        )
    finally:
        app.dependency_overrides.clear()
        errors_logger.removeHandler(handler)

    assert ("geogateway.errors", "trace-500") in handler.seen
