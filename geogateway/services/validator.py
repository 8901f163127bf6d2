"""Whitelist validation of inbound point lists."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from geogateway.api.schemas import ProcessRequest
from geogateway.services.results import ErrorKind, Result


def _path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def _describe(error: dict) -> str:
    """Turn one pydantic error into a short field-level message."""
    loc = tuple(error["loc"])
    path = _path(loc)
    kind = error["type"]

    if not loc:
        return "request body must be a JSON object"
    if kind == "extra_forbidden":
        return f"property {path} should not exist"
    if kind == "missing":
        return f"{path} is required"
    if loc == ("points",):
        if kind == "too_short":
            return "points array cannot be empty"
        return "points must be an array"
    if loc[-1] in ("lat", "lng"):
        if kind == "finite_number":
            return f"{path} must be a finite number"
        return f"{path} must be a number"
    if kind == "model_type":
        return f"{path} must be an object"
    return f"{path}: {error['msg']}"


def describe_errors(errors: list[dict]) -> list[str]:
    return [_describe(err) for err in errors]


def validate_process_request(raw: Any) -> Result[ProcessRequest]:
    """Validate a decoded JSON body into a :class:`ProcessRequest`.

    Unknown fields are rejected, not dropped. On failure the result carries
    one message per offending field, in the order pydantic reports them.
    """
    try:
        return Result.success(ProcessRequest.model_validate(raw))
    except ValidationError as exc:
        return Result.failure(ErrorKind.VALIDATION, describe_errors(exc.errors()))
