from __future__ import annotations

import io
import json
import logging
from collections.abc import AsyncIterator, Iterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from metrics_log_api.config import get_settings
from metrics_log_api.main import create_app
from metrics_log_api.observability import MetricsSink, configure_logging


class LogCapture:
    """In-memory log stream; one parsed JSON object per emitted line."""

    def __init__(self) -> None:
        self.stream = io.StringIO()

    def lines(self) -> list[str]:
        return [line for line in self.stream.getvalue().splitlines() if line.strip()]

    def records(self) -> list[dict]:
        return [json.loads(line) for line in self.lines()]

    def requests(self) -> list[dict]:
        return [r for r in self.records() if r.get("msg") == "request"]


class TerminateRecorder:
    """Stands in for process termination so the crash path can run in-process."""

    def __init__(self) -> None:
        self.calls: list[int] = []

    def __call__(self, code: int = 1) -> None:
        self.calls.append(code)


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("SERVICE_NAME", "metrics-log-api-test")
    monkeypatch.delenv("PORT", raising=False)
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def log_capture() -> Iterator[LogCapture]:
    capture = LogCapture()
    configure_logging(logging.INFO, stream=capture.stream)

    yield capture

    configure_logging(logging.INFO)


@pytest.fixture
def terminated() -> TerminateRecorder:
    return TerminateRecorder()


@pytest.fixture
def app(terminated: TerminateRecorder) -> FastAPI:
    return create_app(terminate=terminated)


@pytest.fixture
def metrics(app: FastAPI) -> MetricsSink:
    return app.state.metrics


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
