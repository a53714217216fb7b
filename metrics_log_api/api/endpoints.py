"""Synthetic endpoints: healthy, slow, failing and crashing responses.

Query parameters are never validated: missing or unparsable values fall back to
their defaults, so these handlers cannot produce client-input errors.
"""

from __future__ import annotations

import asyncio
import os
import random
import re
import sys

from fastapi import FastAPI
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from metrics_log_api.config import get_settings
from metrics_log_api.models.schemas import ServiceStatus, SlowResult
from metrics_log_api.observability import EventOutcome, LogRecord, ObservabilityMiddleware, utc_timestamp


DEFAULT_SLOW_MS = 800
DEFAULT_JITTER_MS = 200
DEFAULT_ERROR_CODE = 500

_DECIMAL = re.compile(r"[+-]?[0-9]+")
_INT64_LIMIT = 1 << 63


def terminate_process(code: int = 1) -> None:
    """Flush pending output and exit immediately, skipping graceful shutdown."""

    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(code)


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    # Plain ASCII decimal only; whitespace, underscores and overflow fall back.
    if not raw or not _DECIMAL.fullmatch(raw):
        return default
    value = int(raw)
    if not -_INT64_LIMIT <= value < _INT64_LIMIT:
        return default
    return value


async def root(request: Request) -> Response:
    request.app.state.metrics.increment_event(EventOutcome.OK)
    payload = ServiceStatus(service=get_settings().service_name, time=utc_timestamp())
    return JSONResponse(payload.model_dump())


async def slow(request: Request) -> Response:
    ms = _int_param(request, "ms", DEFAULT_SLOW_MS)
    jitter = _int_param(request, "jitter", DEFAULT_JITTER_MS)
    if jitter > 0:
        ms += random.randrange(jitter)

    # Only this request's task waits; the delay lands before any status is written.
    await asyncio.sleep(max(ms, 0) / 1000.0)

    request.app.state.metrics.increment_event(EventOutcome.FORCED_SLOW)
    return JSONResponse(SlowResult(slow_ms=ms).model_dump())


async def error(request: Request) -> Response:
    code = _int_param(request, "code", DEFAULT_ERROR_CODE)
    if code < 400 or code > 599:
        code = DEFAULT_ERROR_CODE

    request.app.state.metrics.increment_event(EventOutcome.FORCED_ERROR)
    return PlainTextResponse(f"forced error {code}\n", status_code=code)


async def crash(request: Request) -> Response:
    """Answer 200, then terminate the process once the body is sent.

    The termination runs as a background task, so the middleware's request line
    for this call is normally never written.
    """

    state = request.app.state
    state.metrics.increment_event(EventOutcome.CRASH)
    state.logger.emit(
        LogRecord(
            level="error",
            message="forced crash requested",
            extra={"path": request.url.path},
        )
    )
    return PlainTextResponse("crashing now\n", background=BackgroundTask(state.terminate, 1))


ROUTES = (
    ("/", "root", root),
    ("/slow", "slow", slow),
    ("/error", "error", error),
    ("/crash", "crash", crash),
)


def register_routes(app: FastAPI, observability: ObservabilityMiddleware) -> None:
    for path, route_name, handler in ROUTES:
        app.add_route(path, observability.wrap(route_name, handler), methods=["GET"], name=route_name)
