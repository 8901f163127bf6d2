"""Composite health of the gateway and the downstream geo-processing service."""

from __future__ import annotations

import logging

from geogateway.api.schemas import (
    DownstreamComponent,
    GatewayComponent,
    HealthServices,
    HealthStatus,
    ReadyResponse,
)
from geogateway.services.clock import utc_timestamp
from geogateway.services.downstream import DownstreamClient, DownstreamError
from geogateway.services.metrics import MetricsCollector, metrics as default_metrics

logger = logging.getLogger("geogateway.health")

DOWNSTREAM_SERVICE_NAME = "python-fastapi"


class HealthReporter:
    """Probes the downstream liveness endpoint on every call; caches nothing."""

    def __init__(
        self,
        client: DownstreamClient,
        version: str,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.client = client
        self.version = version
        self._metrics = metrics or default_metrics

    async def check_health(self) -> HealthStatus:
        gateway = GatewayComponent(status="healthy", version=self.version)
        try:
            await self.client.probe_health()
        except DownstreamError as exc:
            logger.warning("Downstream health probe failed: %s", exc)
            self._metrics.inc_health_probe_failure()
            return HealthStatus(
                status="unhealthy",
                timestamp=utc_timestamp(),
                error="One or more services are unavailable",
                services=HealthServices(
                    api_gateway=gateway,
                    python_service=DownstreamComponent(
                        status="unhealthy",
                        timestamp=utc_timestamp(),
                        error="Service unavailable",
                    ),
                ),
            )

        return HealthStatus(
            status="healthy",
            timestamp=utc_timestamp(),
            services=HealthServices(
                api_gateway=gateway,
                python_service=DownstreamComponent(
                    status="healthy",
                    service=DOWNSTREAM_SERVICE_NAME,
                    timestamp=utc_timestamp(),
                ),
            ),
        )

    def ready(self) -> ReadyResponse:
        return ReadyResponse(status="ready", timestamp=utc_timestamp())
