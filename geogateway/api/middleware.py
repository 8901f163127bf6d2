"""Access logging and request-ID middleware (pure ASGI)."""

from __future__ import annotations

import logging
import time

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from geogateway.api.exception_handlers import unhandled_exception_handler
from geogateway.services.metrics import MetricsCollector, metrics as default_metrics
from geogateway.services.request_context import (
    REQUEST_ID_HEADER,
    bound_request_id,
)

logger = logging.getLogger("geogateway.access")


def _incoming_request_id(scope: Scope) -> str:
    for name, value in scope.get("headers", []):
        if name == REQUEST_ID_HEADER:
            return value.decode("latin-1")
    return ""


class RequestLoggingMiddleware:
    """One access line per request: ``method path status latency``.

    Echoes ``X-Request-ID`` (generating one when absent), adds
    ``X-Response-Time-Ms``, and records status and latency in metrics.
    Unhandled exceptions are rendered as the 500 envelope inside the
    request-id scope. Request bodies are never logged.
    """

    def __init__(self, app: ASGIApp, metrics: MetricsCollector | None = None) -> None:
        self.app = app
        self.metrics = metrics or default_metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        with bound_request_id(_incoming_request_id(scope)) as rid:
            start = time.perf_counter()
            status_code = 500
            started = False

            async def send_wrapper(message: Message) -> None:
                nonlocal status_code, started
                if message["type"] == "http.response.start":
                    started = True
                    status_code = message["status"]
                    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
                    headers = list(message.get("headers", []))
                    headers.append((b"x-response-time-ms", str(elapsed_ms).encode()))
                    headers.append((REQUEST_ID_HEADER, rid.encode("latin-1")))
                    message = {**message, "headers": headers}
                await send(message)

            try:
                await self.app(scope, receive, send_wrapper)
            except Exception as exc:
                # Rendered here rather than by ServerErrorMiddleware so the
                # traceback and the 500 still carry the request id.
                if started:
                    raise
                response = await unhandled_exception_handler(Request(scope), exc)
                await response(scope, receive, send_wrapper)
            finally:
                elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
                logger.info(
                    "%s %s %s %.2fms",
                    scope.get("method", ""),
                    scope.get("path", ""),
                    status_code,
                    elapsed_ms,
                )
                self.metrics.inc_request(status_code)
                self.metrics.record_latency(elapsed_ms)
