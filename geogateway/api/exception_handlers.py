"""Exception handlers rendering every failure in the shared error envelope."""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from geogateway.services.clock import utc_timestamp
from geogateway.services.results import GatewayError
from geogateway.services.validator import describe_errors

logger = logging.getLogger("geogateway.errors")


def error_envelope(
    request: Request, status_code: int, message: Any, **extra: Any
) -> dict[str, Any]:
    """``{statusCode, timestamp, path, method, message}`` plus any *extra* keys."""
    body = {
        "statusCode": status_code,
        "timestamp": utc_timestamp(),
        "path": request.url.path,
        "method": request.method,
        "message": message,
    }
    body.update(extra)
    return body


def error_response(
    request: Request, status_code: int, message: Any, **extra: Any
) -> JSONResponse:
    body = error_envelope(request, status_code, message, **extra)
    logger.error(
        "%s %s - %d - %s",
        request.method,
        request.url.path,
        status_code,
        message,
        extra={"status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=body)


def gateway_error_response(request: Request, error: GatewayError) -> JSONResponse:
    return error_response(request, error.status_code, error.message)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """404, 405 and any ``HTTPException`` raised by a route."""
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = f"Cannot {request.method} {request.url.path}"
    response = error_response(request, exc.status_code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Framework-level validation failures are client errors (400).

    Only reached by routes declaring pydantic body or query parameters;
    process-points validates its JSON body itself.
    """
    errors = []
    for err in exc.errors():
        loc = tuple(err["loc"])
        if loc[:1] == ("body",):
            loc = loc[1:]
        errors.append({**err, "loc": loc})
    return error_response(request, 400, describe_errors(errors))


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Log the traceback; return a generic 500 with nothing internal in it."""
    logger.error(
        "Unhandled exception on %s %s:\n%s",
        request.method,
        request.url.path,
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    return JSONResponse(
        status_code=500,
        content=error_envelope(request, 500, "Internal server error"),
    )
