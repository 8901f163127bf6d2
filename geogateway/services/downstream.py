"""HTTP client for the downstream geo-processing service.

One attempt per call. Transport and HTTP failures are raised as
:class:`DownstreamError` subclasses so callers never see raw ``httpx``
exceptions.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from geogateway.api.schemas import ProcessRequest, ProcessResponse

logger = logging.getLogger("geogateway.downstream")


class DownstreamError(Exception):
    """Base class for every failure talking to the downstream service."""


class DownstreamTimeout(DownstreamError):
    """No response within the configured timeout."""


class DownstreamConnectionError(DownstreamError):
    """Connection refused, reset, DNS failure or too many redirects."""


class DownstreamHTTPStatus(DownstreamError):
    """The service answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"downstream returned HTTP {status_code}")


class DownstreamMalformedResponse(DownstreamError):
    """A 2xx body that is not JSON or lacks ``centroid``/``bounds``."""


class DownstreamClient:
    """Async client backed by a single shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        process_path: str = "/geo/process-points",
        health_path: str = "/health",
        process_timeout: float = 10.0,
        health_timeout: float = 5.0,
        max_redirects: int = 5,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.process_path = process_path
        self.health_path = health_path
        self._process_timeout = process_timeout
        self._health_timeout = health_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=process_timeout,
            follow_redirects=True,
            max_redirects=max_redirects,
            transport=transport,
        )

    async def __aenter__(self) -> DownstreamClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise DownstreamTimeout(f"{method} {url} timed out") from exc
        except httpx.RequestError as exc:
            raise DownstreamConnectionError(
                f"{method} {url} failed: {type(exc).__name__}: {exc}"
            ) from exc

        if not resp.is_success:
            raise DownstreamHTTPStatus(resp.status_code, resp.text)
        return resp

    async def forward(self, route: str, request: ProcessRequest) -> ProcessResponse:
        """POST *request* to *route* and parse the body as a ProcessResponse."""
        resp = await self._send(
            "POST",
            route,
            json=request.model_dump(),
            timeout=self._process_timeout,
        )
        try:
            return ProcessResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise DownstreamMalformedResponse(
                f"unexpected body from {route}: {exc}"
            ) from exc

    async def probe_health(self) -> None:
        """Return normally when the liveness endpoint answers 2xx."""
        await self._send("GET", self.health_path, timeout=self._health_timeout)
        logger.debug("Downstream liveness probe succeeded", extra={"url": self.base_url})
