"""FastAPI dependencies resolving the components owned by the app factory."""

from __future__ import annotations

from fastapi import Request

from geogateway.services.cache import ResponseCache
from geogateway.services.health import HealthReporter
from geogateway.services.processor import GeoProcessor


def get_processor(request: Request) -> GeoProcessor:
    return request.app.state.processor


def get_health_reporter(request: Request) -> HealthReporter:
    return request.app.state.health_reporter


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache
