import sys

from metrics_log_api import __main__ as entrypoint
from metrics_log_api.config import get_settings


def test_port_defaults_to_3000() -> None:
    assert get_settings().port == 3000


def test_port_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8088")
    get_settings.cache_clear()
    assert get_settings().port == 8088


def test_main_logs_startup_and_serves_app(monkeypatch, log_capture) -> None:
    served: dict = {}

    def _fake_run(app, **kwargs) -> None:
        served["app"] = app
        served.update(kwargs)

    monkeypatch.setenv("PORT", "4100")
    get_settings.cache_clear()
    monkeypatch.setattr(sys, "argv", ["metrics-log-api"])
    monkeypatch.setattr(entrypoint.uvicorn, "run", _fake_run)
    # main() reconfigures logging to stdout; keep writing into the capture stream.
    monkeypatch.setattr(entrypoint, "configure_logging", lambda level: None)

    entrypoint.main()

    assert served["port"] == 4100
    assert served["access_log"] is False
    assert served["app"].state.metrics is not None

    [record] = log_capture.records()
    assert record["msg"] == "starting server"
    assert record["extra"] == {"addr": ":4100"}
