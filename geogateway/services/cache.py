"""Thread-safe LRU + TTL cache for downstream process-points responses."""

from __future__ import annotations

import hashlib
import json
import threading
import time
from collections import OrderedDict
from collections.abc import Callable

from geogateway.api.schemas import ProcessRequest, ProcessResponse
from geogateway.services.metrics import MetricsCollector, metrics as default_metrics


class ResponseCache:
    """LRU cache whose entries expire ``ttl`` seconds after insertion.

    ``clock`` must be monotonic; tests pass a fake one to step past the TTL.
    Expired entries count as misses and are dropped when read.
    """

    def __init__(
        self,
        maxsize: int = 100,
        ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsCollector | None = None,
    ):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._maxsize = maxsize
        self._ttl = ttl
        self._clock = clock
        self._metrics = metrics or default_metrics
        self._data: OrderedDict[str, tuple[ProcessResponse, float]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> ProcessResponse | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                self._metrics.inc_cache_miss()
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._data[key]
                self._metrics.inc_cache_miss()
                return None
            self._data.move_to_end(key)
            self._metrics.inc_cache_hit()
            return value

    def set(self, key: str, value: ProcessResponse, ttl: float | None = None) -> None:
        expires_at = self._clock() + (self._ttl if ttl is None else ttl)
        with self._lock:
            if key in self._data:
                del self._data[key]
            elif len(self._data) >= self._maxsize:
                self._data.popitem(last=False)
            self._data[key] = (value, expires_at)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._data)

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def ttl(self) -> float:
        return self._ttl


def canonical_body(request: ProcessRequest) -> str:
    """Compact JSON with sorted keys; point order is preserved."""
    return json.dumps(request.model_dump(), sort_keys=True, separators=(",", ":"))


def make_cache_key(route: str, request: ProcessRequest) -> str:
    digest = hashlib.sha256(canonical_body(request).encode("utf-8")).hexdigest()
    return f"{route}:{digest}"
