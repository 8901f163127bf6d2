from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from geogateway.api.exception_handlers import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from geogateway.api.middleware import RequestLoggingMiddleware
from geogateway.api.routes.geo import router as geo_router
from geogateway.api.routes.health import router as health_router
from geogateway.config import Settings, settings as default_settings
from geogateway.logging_config import setup_logging
from geogateway.services.cache import ResponseCache
from geogateway.services.downstream import DownstreamClient
from geogateway.services.health import HealthReporter
from geogateway.services.processor import GeoProcessor

logger = logging.getLogger("geogateway")

API_PREFIX = "/api"

_DESCRIPTION = """\
Validating, caching gateway in front of the geo-processing service.

Clients submit lists of `{lat, lng}` points; the gateway validates them,
forwards them to the downstream service, which computes the **centroid**
and **bounding box**, and caches identical requests for five minutes.

### Errors

Every non-2xx response shares one envelope:
`{statusCode, timestamp, path, method, message}`.
Invalid input and inputs rejected by the downstream service are `400`;
an unreachable or misbehaving downstream service is `503`.
"""

_OPENAPI_TAGS = [
    {"name": "geo", "description": "Coordinate processing, forwarded downstream."},
    {"name": "system", "description": "Health, readiness and metrics."},
]


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    cache: ResponseCache | None = None,
) -> FastAPI:
    """Build the gateway app and the components it owns.

    *transport* replaces the network for the downstream client and *cache*
    replaces the response cache; both exist for tests.
    """
    settings = settings or default_settings

    client = DownstreamClient(
        base_url=settings.python_service_url,
        process_path=settings.python_process_points_endpoint,
        health_path=settings.python_health_endpoint,
        process_timeout=settings.process_timeout,
        health_timeout=settings.health_timeout,
        max_redirects=settings.max_redirects,
        transport=transport,
    )
    if cache is None:
        cache = ResponseCache(maxsize=settings.cache_maxsize, ttl=settings.cache_ttl)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        logger.info(
            "Geo gateway listening on port %d, geo service at %s",
            settings.port,
            settings.python_service_url,
        )
        yield
        await client.aclose()

    app = FastAPI(
        title="Geo Processor API Gateway",
        version=settings.app_version,
        summary="Validating, caching gateway for coordinate processing",
        description=_DESCRIPTION,
        openapi_tags=_OPENAPI_TAGS,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.cache = cache
    app.state.downstream = client
    app.state.processor = GeoProcessor(
        client, cache, route=settings.python_process_points_endpoint
    )
    app.state.health_reporter = HealthReporter(client, version=settings.app_version)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.frontend_url.split(",")],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(geo_router, prefix=API_PREFIX)
    app.include_router(health_router, prefix=API_PREFIX)
    return app


app = create_app()
