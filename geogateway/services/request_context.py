"""Per-request correlation ID carried through logs via contextvars."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("geogateway_request_id", default="")

REQUEST_ID_HEADER = b"x-request-id"


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return request_id_var.get()


@contextmanager
def bound_request_id(request_id: str | None = None) -> Iterator[str]:
    """Bind *request_id* (or a fresh one) for the duration of the block."""
    rid = request_id or generate_request_id()
    token = request_id_var.set(rid)
    try:
        yield rid
    finally:
        request_id_var.reset(token)
