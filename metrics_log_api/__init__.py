"""Demo HTTP service instrumented with structured logs and Prometheus metrics."""

__version__ = "0.1.0"
