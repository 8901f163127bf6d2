"""Log formatting for the gateway: one JSON object per line, or plain text."""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone

from geogateway.services.request_context import get_request_id

# Every LogRecord carries these; anything else came in through ``extra=``.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

# Third-party loggers that log every outbound request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def _extras(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


def _format_exc(record: logging.LogRecord) -> str | None:
    if record.exc_info and record.exc_info[0] is not None:
        return "".join(traceback.format_exception(*record.exc_info))
    return None


class JSONFormatter(logging.Formatter):
    """Structured output for log shippers.

    Fields passed with ``extra=`` (``route``, ``points``, ``status_code``...)
    become top-level keys next to ``timestamp``/``level``/``logger``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id
        entry.update(_extras(record))

        exc = _format_exc(record)
        if exc:
            entry["exception"] = exc
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S"
        )
        request_id = get_request_id()
        prefix = f"[{request_id[:12]}] " if request_id else ""
        line = f"{ts} {record.levelname:<8} {prefix}{record.name} - {record.getMessage()}"

        extras = _extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))

        exc = _format_exc(record)
        if exc:
            line += "\n" + exc
        return line


def setup_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Install a single stderr handler on the root logger.

    Safe to call more than once; previous handlers are replaced.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if log_format.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
