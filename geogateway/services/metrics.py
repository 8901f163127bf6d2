"""In-memory gateway metrics: request counts, cache and downstream outcomes."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

_DOWNSTREAM_OUTCOMES = ("ok", "rejected", "unavailable")


@dataclass
class MetricsCollector:
    """Counters and latency samples guarded by one ``threading.Lock``.

    Latency samples are capped at ``max_latency_samples``; past the cap the
    oldest half is dropped.
    """

    max_latency_samples: int = field(default=10_000, repr=False)

    total_requests: int = field(default=0, init=False)
    status_codes: dict[int, int] = field(default_factory=dict, init=False)
    cache_hits: int = field(default=0, init=False)
    cache_misses: int = field(default=0, init=False)
    downstream: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(_DOWNSTREAM_OUTCOMES, 0), init=False
    )
    health_probe_failures: int = field(default=0, init=False)

    _latencies: list[float] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _start_time: float = field(default_factory=time.monotonic, init=False, repr=False)

    # -- counters -------------------------------------------------------------

    def inc_request(self, status_code: int) -> None:
        with self._lock:
            self.total_requests += 1
            self.status_codes[status_code] = self.status_codes.get(status_code, 0) + 1

    def inc_cache_hit(self) -> None:
        with self._lock:
            self.cache_hits += 1

    def inc_cache_miss(self) -> None:
        with self._lock:
            self.cache_misses += 1

    def inc_downstream(self, outcome: str) -> None:
        """Count a forwarded call as ``ok``, ``rejected`` or ``unavailable``."""
        if outcome not in _DOWNSTREAM_OUTCOMES:
            raise ValueError(f"unknown downstream outcome: {outcome!r}")
        with self._lock:
            self.downstream[outcome] += 1

    def inc_health_probe_failure(self) -> None:
        with self._lock:
            self.health_probe_failures += 1

    # -- latency --------------------------------------------------------------

    def record_latency(self, ms: float) -> None:
        with self._lock:
            self._latencies.append(ms)
            if len(self._latencies) > self.max_latency_samples:
                self._latencies = self._latencies[-(self.max_latency_samples // 2):]

    def get_latency_percentiles(self) -> dict[str, float]:
        with self._lock:
            return self._percentiles_unlocked()

    def _percentiles_unlocked(self) -> dict[str, float]:
        if not self._latencies:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}
        s = sorted(self._latencies)
        last = len(s) - 1
        return {
            name: round(s[min(int(len(s) * q), last)], 2)
            for name, q in (("p50", 0.50), ("p90", 0.90), ("p99", 0.99))
        }

    # -- snapshot -------------------------------------------------------------

    def uptime_seconds(self) -> float:
        return round(time.monotonic() - self._start_time, 2)

    def snapshot(self) -> dict:
        with self._lock:
            lookups = self.cache_hits + self.cache_misses
            return {
                "uptime_seconds": round(time.monotonic() - self._start_time, 2),
                "total_requests": self.total_requests,
                "status_codes": dict(self.status_codes),
                "cache": {
                    "hits": self.cache_hits,
                    "misses": self.cache_misses,
                    "hit_rate": round(self.cache_hits / lookups, 4) if lookups else 0.0,
                },
                "downstream": dict(self.downstream),
                "health_probe_failures": self.health_probe_failures,
                "latency_ms": self._percentiles_unlocked(),
            }

    def reset(self) -> None:
        with self._lock:
            self.total_requests = 0
            self.status_codes.clear()
            self.cache_hits = 0
            self.cache_misses = 0
            self.downstream = dict.fromkeys(_DOWNSTREAM_OUTCOMES, 0)
            self.health_probe_failures = 0
            self._latencies.clear()
            self._start_time = time.monotonic()


metrics = MetricsCollector()
