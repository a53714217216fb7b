from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Mapping, TextIO

import structlog


# Key order of every emitted line; anything else goes after these.
LOG_FIELDS = (
    "ts",
    "level",
    "msg",
    "request_id",
    "method",
    "path",
    "status",
    "latency_ms",
    "remote_addr",
    "extra",
)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with nanosecond digits, e.g. ``2024-01-02T03:04:05.123456789Z``."""

    seconds, nanos = divmod(time.time_ns(), 1_000_000_000)
    base = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    return f"{base}.{nanos:09d}Z"


@dataclass(frozen=True)
class LogRecord:
    level: Literal["info", "error"]
    message: str
    correlation_id: str | None = None
    method: str | None = None
    path: str | None = None
    status: int | None = None
    latency_ms: int | None = None
    remote_address: str | None = None
    extra: Mapping[str, Any] | None = None
    timestamp: str = field(default_factory=utc_timestamp)

    def fields(self) -> dict[str, Any]:
        """Optional line fields, with empty and zero values left out."""

        values = {
            "request_id": self.correlation_id,
            "method": self.method,
            "path": self.path,
            "status": self.status,
            "latency_ms": self.latency_ms,
            "remote_addr": self.remote_address,
            "extra": dict(self.extra) if self.extra else None,
        }
        return {key: value for key, value in values.items() if value}


class StructuredLogger:
    """Writes :class:`LogRecord` instances as one JSON object per line."""

    def __init__(self, name: str = "metrics_log_api") -> None:
        self._log = structlog.get_logger(name)

    def emit(self, record: LogRecord) -> None:
        try:
            getattr(self._log, record.level)(record.message, ts=record.timestamp, **record.fields())
        except Exception:
            # Best effort: a record that cannot be rendered is dropped.
            return


def _add_timestamp(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("ts", utc_timestamp())
    return event_dict


def _order_fields(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    ordered = {key: event_dict.pop(key) for key in LOG_FIELDS if key in event_dict}
    ordered.update(event_dict)
    return ordered


class _LineHandler(logging.StreamHandler):
    def handleError(self, record: logging.LogRecord) -> None:
        # Unrenderable records are dropped without a traceback on stderr.
        return


def configure_logging(level: int | str = logging.INFO, stream: TextIO | None = None) -> None:
    """Configure structlog + stdlib logging for JSON output on stdout.

    Safe to call multiple times; each call replaces the output handler.
    """

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.EventRenamer("msg"),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            # Let ProcessorFormatter render JSON for stdlib log records too.
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _order_fields,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=pre_chain,
    )

    handler = _LineHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # Keep uvicorn's own loggers consistent with our handler.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(level)
