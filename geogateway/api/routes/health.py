"""Liveness, readiness and metrics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from geogateway.api.dependencies import get_cache, get_health_reporter
from geogateway.api.exception_handlers import error_envelope
from geogateway.api.schemas import ErrorResponse, HealthStatus, ReadyResponse
from geogateway.services.cache import ResponseCache
from geogateway.services.health import HealthReporter
from geogateway.services.metrics import metrics

router = APIRouter(tags=["system"])


@router.get(
    "/health",
    summary="Gateway and downstream health",
    description="Probes the geo-processing service. Returns 200 when it is "
    "reachable, 503 with the same composite body when it is not.",
    response_model=HealthStatus,
    responses={503: {"model": ErrorResponse, "description": "Downstream unreachable"}},
)
async def health(
    request: Request,
    reporter: HealthReporter = Depends(get_health_reporter),
):
    status = await reporter.check_health()
    if status.healthy:
        return JSONResponse(content=status.to_body())
    return JSONResponse(
        status_code=503,
        content=error_envelope(request, 503, status.error, **status.to_body()),
    )


@router.get(
    "/ready",
    summary="Readiness probe",
    description="Always 200 while the process is serving; no downstream call.",
    response_model=ReadyResponse,
)
async def ready(reporter: HealthReporter = Depends(get_health_reporter)):
    return reporter.ready()


@router.get(
    "/metrics",
    summary="Gateway metrics",
    description="Request counters, cache hit rate, downstream outcomes and "
    "latency percentiles since start-up.",
)
async def get_metrics(cache: ResponseCache = Depends(get_cache)):
    snap = metrics.snapshot()
    snap["cache"]["size"] = cache.size
    snap["cache"]["max_size"] = cache.maxsize
    snap["cache"]["ttl_seconds"] = cache.ttl
    return snap
