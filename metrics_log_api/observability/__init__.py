"""Request-level observability: correlation ids, structlog JSON lines, Prometheus metrics.

Every wrapped request produces exactly one ``request`` log line and one metrics update.
"""

from .context import REQUEST_ID_HEADER, resolve_request_id
from .logging import LogRecord, StructuredLogger, configure_logging, utc_timestamp
from .metrics import LATENCY_BUCKETS, EventOutcome, MetricsSink
from .middleware import ObservabilityMiddleware, ObservedEndpoint, ResponseObserver

__all__ = [
    "LATENCY_BUCKETS",
    "REQUEST_ID_HEADER",
    "EventOutcome",
    "LogRecord",
    "MetricsSink",
    "ObservabilityMiddleware",
    "ObservedEndpoint",
    "ResponseObserver",
    "StructuredLogger",
    "configure_logging",
    "resolve_request_id",
    "utc_timestamp",
]
