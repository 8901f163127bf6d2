"""Result type returned by the forwarding pipeline instead of raising."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    DOWNSTREAM_REJECTED = "downstream_rejected"
    DOWNSTREAM_UNAVAILABLE = "downstream_unavailable"
    INTERNAL = "internal"


_STATUS_FOR_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.DOWNSTREAM_REJECTED: 400,
    ErrorKind.DOWNSTREAM_UNAVAILABLE: 503,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class GatewayError:
    """A classified failure. ``message`` is what the caller is allowed to see."""

    kind: ErrorKind
    message: str | list[str]

    @property
    def status_code(self) -> int:
        return _STATUS_FOR_KIND[self.kind]


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: GatewayError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str | list[str]) -> Result[T]:
        return cls(error=GatewayError(kind, message))
