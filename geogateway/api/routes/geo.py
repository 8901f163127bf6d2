"""POST /api/geo/process-points: forward coordinates to the geo service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from geogateway.api.dependencies import get_processor
from geogateway.api.exception_handlers import error_response, gateway_error_response
from geogateway.api.schemas import ErrorResponse, ProcessResponse
from geogateway.services.processor import GeoProcessor

logger = logging.getLogger("geogateway.api.geo")

router = APIRouter(prefix="/geo", tags=["geo"])


@router.post(
    "/process-points",
    summary="Centroid and bounds of a point list",
    description=(
        "Body: `{\"points\": [{\"lat\": number, \"lng\": number}, ...]}` with at "
        "least one point and no other fields. The points are forwarded to the "
        "geo-processing service; identical requests are answered from a "
        "response cache for `CACHE_TTL` seconds (default 300)."
    ),
    response_model=ProcessResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid points or rejected downstream"},
        503: {"model": ErrorResponse, "description": "Geo-processing service unavailable"},
    },
)
async def process_points(
    request: Request,
    processor: GeoProcessor = Depends(get_processor),
):
    try:
        raw = await request.json()
    except ValueError:
        return error_response(request, 400, ["request body must be valid JSON"])

    points = raw.get("points") if isinstance(raw, dict) else None
    logger.info(
        "Received request to process %s coordinates",
        len(points) if isinstance(points, list) else "?",
    )

    result = await processor.process(raw)
    if not result.ok:
        return gateway_error_response(request, result.error)

    logger.info("Successfully processed coordinates")
    return JSONResponse(content=result.value.model_dump())
