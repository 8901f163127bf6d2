"""Timestamp helpers shared by the health reporter and error envelopes."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
