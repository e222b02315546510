"""FastAPI middleware that opens a server span per request.

The parent context is taken from the incoming headers through the global
propagator, so requests arriving from a traced caller join its trace.
Each request is also written to the access log with its latency.
"""

import time
from typing import Optional

from fastapi import Request
from opentelemetry import propagate, trace
from opentelemetry.trace import SpanKind, Status, StatusCode, TracerProvider
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.logging_config import get_logger

logger = get_logger(__name__)


class TracingMiddleware(BaseHTTPMiddleware):
    """Wraps every HTTP request in a SERVER span."""

    def __init__(self, app: ASGIApp, tracer_provider: Optional[TracerProvider] = None):
        super().__init__(app)
        self.tracer = trace.get_tracer(__name__, tracer_provider=tracer_provider)

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request inside a span and record its outcome.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in the chain

        Returns:
            HTTP response from downstream handlers
        """
        method = request.method
        path = request.url.path
        parent = propagate.extract(request.headers)

        with self.tracer.start_as_current_span(
            f"{method} {path}", context=parent, kind=SpanKind.SERVER
        ) as span:
            span.set_attribute("http.request.method", method)
            span.set_attribute("url.path", path)

            t0 = time.monotonic_ns()
            response = await call_next(request)
            latency_ms = (time.monotonic_ns() - t0) / 1_000_000.0

            # The router stores the matched route in the scope
            route = request.scope.get("route")
            route_path = getattr(route, "path", None)
            if route_path:
                span.update_name(f"{method} {route_path}")
                span.set_attribute("http.route", route_path)

            span.set_attribute("http.response.status_code", response.status_code)
            if response.status_code >= 500:
                span.set_status(Status(StatusCode.ERROR))

        logger.info(f"{method} {path} -> {response.status_code} ({latency_ms:.2f} ms)")
        return response
