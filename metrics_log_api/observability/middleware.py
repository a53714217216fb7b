from __future__ import annotations

import inspect
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse
from starlette.routing import request_response

from metrics_log_api.observability.context import REQUEST_ID_HEADER, resolve_request_id
from metrics_log_api.observability.logging import LogRecord, StructuredLogger
from metrics_log_api.observability.metrics import MetricsSink


class ResponseObserver:
    """Passthrough ASGI ``send`` that remembers the first status written.

    Messages are forwarded unchanged and immediately; ``headers`` are added to
    the response start message on the way through.
    """

    def __init__(self, send: Callable[..., Any], headers: dict[str, str] | None = None) -> None:
        self._send = send
        self._headers = headers or {}
        self._status: int | None = None

    @property
    def started(self) -> bool:
        return self._status is not None

    @property
    def status(self) -> int:
        return self._status if self._status is not None else 200

    async def __call__(self, message: dict[str, Any]) -> None:
        if message.get("type") == "http.response.start":
            if self._status is None:
                self._status = int(message.get("status", 200))
            if self._headers:
                headers = MutableHeaders(scope=message)
                for name, value in self._headers.items():
                    headers[name] = value

        await self._send(message)


class ObservedEndpoint:
    """ASGI app that instruments a single route: request id, timing, metrics and one access log line."""

    def __init__(
        self,
        route_name: str,
        handler: Callable[..., Any],
        metrics: MetricsSink,
        logger: StructuredLogger,
    ) -> None:
        self.route_name = route_name
        self.handler = handler
        # Same rule Starlette routing uses: plain functions take a Request, anything else is ASGI.
        if inspect.isfunction(handler) or inspect.ismethod(handler):
            self.app = request_response(handler)
        else:
            self.app = handler
        self._metrics = metrics
        self._logger = logger

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = resolve_request_id(Headers(scope=scope))
        observer = ResponseObserver(send, headers={REQUEST_ID_HEADER: request_id})
        start = perf_counter()
        failed = False

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                await self.app(scope, receive, observer)
            except Exception:
                if observer.started:
                    raise
                # Answer here so the 500 still carries the request id header.
                structlog.get_logger("metrics_log_api").exception("unhandled handler error", route=self.route_name)
                await PlainTextResponse("Internal Server Error", status_code=500)(scope, receive, observer)
            except BaseException:
                failed = True
                raise
            finally:
                elapsed = perf_counter() - start
                # Cancelled before any status was written.
                status = 500 if failed and not observer.started else observer.status
                self._record(scope, request_id, status, elapsed)

    def _record(self, scope: dict[str, Any], request_id: str, status: int, elapsed: float) -> None:
        method = scope.get("method", "")

        # Update metrics first so they update even if logging misbehaves.
        # Labels use the route name, never the raw path, to keep cardinality bounded.
        self._metrics.increment_request(method, self.route_name, status)
        self._metrics.observe_latency(method, self.route_name, elapsed)

        self._logger.emit(
            LogRecord(
                level="info",
                message="request",
                correlation_id=request_id,
                method=method,
                path=scope.get("path"),
                status=status,
                latency_ms=int(elapsed * 1000),
                remote_address=_remote_addr(scope),
            )
        )


class ObservabilityMiddleware:
    """Wraps endpoint handlers so every request gets the same instrumentation."""

    def __init__(self, metrics: MetricsSink, logger: StructuredLogger) -> None:
        self.metrics = metrics
        self.logger = logger

    def wrap(self, route_name: str, handler: Callable[..., Any]) -> ObservedEndpoint:
        return ObservedEndpoint(route_name, handler, self.metrics, self.logger)


def _remote_addr(scope: dict[str, Any]) -> str | None:
    client = scope.get("client")
    if not client:
        return None
    host, port = client[0], client[1]
    return f"{host}:{port}"
