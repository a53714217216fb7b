from __future__ import annotations

import argparse

import uvicorn

from metrics_log_api.config import get_settings
from metrics_log_api.main import create_app
from metrics_log_api.observability import LogRecord, StructuredLogger, configure_logging


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Metrics/log demo HTTP service")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Listen port (env PORT)")
    args = parser.parse_args()

    configure_logging(settings.log_level.upper())
    logger = StructuredLogger()
    logger.emit(LogRecord(level="info", message="starting server", extra={"addr": f":{args.port}"}))

    app = create_app(logger=logger)
    # access_log off: the observability middleware already writes one line per request.
    uvicorn.run(app, host=args.host, port=args.port, log_config=None, access_log=False)


if __name__ == "__main__":
    main()
