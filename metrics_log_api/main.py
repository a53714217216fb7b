from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from metrics_log_api import __version__
from metrics_log_api.api.endpoints import register_routes, terminate_process
from metrics_log_api.api.system import router as system_router
from metrics_log_api.config import get_settings
from metrics_log_api.observability import MetricsSink, ObservabilityMiddleware, StructuredLogger, configure_logging


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings().log_level.upper())
    yield


def create_app(
    *,
    metrics: MetricsSink | None = None,
    logger: StructuredLogger | None = None,
    terminate: Callable[[int], None] = terminate_process,
) -> FastAPI:
    """Build the application around one metrics sink and one logger shared by all routes."""

    metrics = metrics if metrics is not None else MetricsSink()
    logger = logger if logger is not None else StructuredLogger()

    app = FastAPI(title="Metrics Log API", version=__version__, lifespan=_lifespan)
    app.state.metrics = metrics
    app.state.logger = logger
    app.state.terminate = terminate

    register_routes(app, ObservabilityMiddleware(metrics, logger))
    app.include_router(system_router)
    return app
