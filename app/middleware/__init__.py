"""Middleware package for FastAPI request/response processing.

This package contains middleware components for cross-cutting concerns:
tracing, crash reporting, request timeout and concurrency limiting.
"""

from .concurrency_middleware import ConcurrencyLimitMiddleware
from .panic_middleware import PanicReportMiddleware
from .timeout_middleware import TimeoutMiddleware
from .tracing_middleware import TracingMiddleware

__all__ = [
    "ConcurrencyLimitMiddleware",
    "PanicReportMiddleware",
    "TimeoutMiddleware",
    "TracingMiddleware",
]
