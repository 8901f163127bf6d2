"""Pydantic models for request/response bodies and OpenAPI documentation."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Envelope returned by every non-2xx response."""

    statusCode: int = Field(..., description="HTTP status code")
    timestamp: str = Field(..., description="ISO-8601 UTC time of the failure")
    path: str = Field(..., description="Request path")
    method: str = Field(..., description="Request method")
    message: str | list[str] = Field(
        ...,
        description="Human-readable message; a list of field messages for "
        "validation failures",
    )


# ---------------------------------------------------------------------------
# /api/geo/process-points
# ---------------------------------------------------------------------------

# Strict so that "12.5" and true are rejected rather than coerced.
FiniteNumber = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class Coordinate(BaseModel):
    """A latitude/longitude pair. Range checks are left to the downstream service."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    lat: FiniteNumber = Field(..., description="Latitude")
    lng: FiniteNumber = Field(..., description="Longitude")

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be a number")
        return value


class ProcessRequest(BaseModel):
    """Ordered, non-empty list of points to forward downstream."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    points: list[Coordinate] = Field(
        ..., min_length=1, description="Points to process (at least one)"
    )


class Centroid(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    lat: float
    lng: float


class Bounds(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    north: float
    south: float
    east: float
    west: float


class ProcessResponse(BaseModel):
    """Downstream result, passed through unchanged (extra fields included)."""

    model_config = ConfigDict(extra="allow", frozen=True)

    centroid: Centroid = Field(..., description="Centroid of the submitted points")
    bounds: Bounds = Field(..., description="Bounding box of the submitted points")


# ---------------------------------------------------------------------------
# /api/health, /api/ready
# ---------------------------------------------------------------------------


class GatewayComponent(BaseModel):
    status: str = Field("healthy", description="Always 'healthy' while answering")
    version: str = Field(..., description="Gateway version")


class DownstreamComponent(BaseModel):
    status: str = Field(..., description="'healthy' or 'unhealthy'")
    service: str | None = Field(None, description="Downstream service name")
    timestamp: str = Field(..., description="Time of the liveness probe")
    error: str | None = Field(None, description="Set when the probe failed")


class HealthServices(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_gateway: GatewayComponent = Field(..., alias="api-gateway")
    python_service: DownstreamComponent = Field(..., alias="python-service")


class HealthStatus(BaseModel):
    """Composite health of the gateway and its downstream dependency."""

    status: str = Field(..., description="'healthy' or 'unhealthy'")
    timestamp: str
    error: str | None = Field(None, description="Set when a dependency is down")
    services: HealthServices

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ReadyResponse(BaseModel):
    status: str = Field("ready", description="Always 'ready'")
    timestamp: str
