"""Forwarding pipeline: validate, serve from cache or call downstream, store."""

from __future__ import annotations

import json
import logging
from typing import Any

from geogateway.api.schemas import ProcessRequest, ProcessResponse
from geogateway.services.cache import ResponseCache, make_cache_key
from geogateway.services.downstream import (
    DownstreamClient,
    DownstreamError,
    DownstreamHTTPStatus,
)
from geogateway.services.metrics import MetricsCollector, metrics as default_metrics
from geogateway.services.results import ErrorKind, Result
from geogateway.services.validator import validate_process_request

logger = logging.getLogger("geogateway.processor")

UNAVAILABLE_MESSAGE = "Geo-processing service is unavailable"
UNEXPECTED_MESSAGE = "Geo-processing service encountered an error"
DEFAULT_REJECTED_MESSAGE = "Invalid request data"


def rejection_message(body: str) -> str | list[str]:
    """Extract the caller-facing message from a downstream 400 body.

    A JSON string is unwrapped, a JSON object contributes its ``detail`` or
    ``message`` value, anything else is passed through as text.
    """
    text = body.strip()
    if not text:
        return DEFAULT_REJECTED_MESSAGE
    try:
        decoded = json.loads(text)
    except ValueError:
        return text
    if isinstance(decoded, str):
        return decoded or DEFAULT_REJECTED_MESSAGE
    if isinstance(decoded, dict):
        for field in ("detail", "message"):
            value = decoded.get(field)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, list) and all(isinstance(v, str) for v in value):
                return value
    return text


class GeoProcessor:
    """Runs one process-points request end to end.

    Never raises for downstream failures: they come back as a failed
    :class:`Result` whose kind decides the HTTP status.
    """

    def __init__(
        self,
        client: DownstreamClient,
        cache: ResponseCache,
        route: str = "/geo/process-points",
        ttl: float | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.route = route
        self.ttl = ttl
        self._metrics = metrics or default_metrics

    async def process(self, raw: Any) -> Result[ProcessResponse]:
        validated = validate_process_request(raw)
        if not validated.ok:
            logger.warning(
                "Rejected invalid process-points request",
                extra={"errors": validated.error.message},
            )
            return Result(error=validated.error)
        return await self.lookup_or_compute(validated.value)

    async def lookup_or_compute(self, request: ProcessRequest) -> Result[ProcessResponse]:
        points = len(request.points)
        logger.info("Processing %d coordinate points", points, extra={"points": points})

        key = make_cache_key(self.route, request)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Serving process-points response from cache", extra={"points": points})
            return Result.success(cached)

        result = await self._call_downstream(request)
        if result.ok:
            self.cache.set(key, result.value, ttl=self.ttl)
            logger.info("Successfully processed geo data", extra={"points": points})
        return result

    async def _call_downstream(self, request: ProcessRequest) -> Result[ProcessResponse]:
        try:
            response = await self.client.forward(self.route, request)
        except DownstreamHTTPStatus as exc:
            logger.error(
                "Downstream rejected request: HTTP %d %s",
                exc.status_code,
                exc.body[:500],
                extra={"route": self.route},
            )
            if exc.status_code == 400:
                self._metrics.inc_downstream("rejected")
                return Result.failure(
                    ErrorKind.DOWNSTREAM_REJECTED, rejection_message(exc.body)
                )
            self._metrics.inc_downstream("unavailable")
            return Result.failure(ErrorKind.DOWNSTREAM_UNAVAILABLE, UNAVAILABLE_MESSAGE)
        except DownstreamError as exc:
            logger.error(
                "Error calling geo-processing service: %s",
                exc,
                extra={"route": self.route, "error_type": type(exc).__name__},
            )
            self._metrics.inc_downstream("unavailable")
            return Result.failure(ErrorKind.DOWNSTREAM_UNAVAILABLE, UNAVAILABLE_MESSAGE)
        except Exception:
            logger.exception("Unexpected error forwarding to geo-processing service")
            self._metrics.inc_downstream("unavailable")
            return Result.failure(ErrorKind.DOWNSTREAM_UNAVAILABLE, UNEXPECTED_MESSAGE)

        self._metrics.inc_downstream("ok")
        return Result.success(response)
