from __future__ import annotations

from enum import Enum
from typing import Final

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest


LATENCY_BUCKETS: Final[tuple[float, ...]] = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
"""Fixed latency ladder (seconds) for the request duration histogram."""


class EventOutcome(str, Enum):
    OK = "ok"
    FORCED_SLOW = "forced_slow"
    FORCED_ERROR = "forced_error"
    CRASH = "crash"


class MetricsSink:
    """Process-lifetime request counters and latency histogram.

    Each sink owns its own registry instead of the prometheus_client default one,
    so it is created once at startup and handed to whoever records into it.
    Metric children are lock-guarded by prometheus_client, so concurrent callers
    never lose an increment.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            labelnames=("method", "route", "status"),
            registry=self.registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            labelnames=("method", "route"),
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )
        self.app_events_total = Counter(
            "app_events_total",
            "Application events (crash, forced_error, forced_slow, ok)",
            labelnames=("type",),
            registry=self.registry,
        )

    def increment_request(self, method: str, route: str, status: int) -> None:
        self.http_requests_total.labels(method=method, route=route, status=str(status)).inc()

    def observe_latency(self, method: str, route: str, seconds: float) -> None:
        self.http_request_duration_seconds.labels(method=method, route=route).observe(seconds)

    def increment_event(self, kind: EventOutcome | str) -> None:
        self.app_events_total.labels(type=EventOutcome(kind).value).inc()

    def render(self) -> tuple[bytes, str]:
        """Return the text exposition payload and its content type."""

        return generate_latest(self.registry), CONTENT_TYPE_LATEST
