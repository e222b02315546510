"""One-time observability setup: crash reporter, logging and tracing.

``setup_telemetry`` must run before the server accepts requests; the
returned ``Telemetry`` handle is shut down after the server has drained.
"""

from typing import Optional

from opentelemetry import propagate, trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.propagators.jaeger import JaegerPropagator
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from app.core.config import Settings, settings as default_settings
from app.core.crash_report import CrashReporter
from app.core.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


class Telemetry:
    """Handle over everything ``setup_telemetry`` installed."""

    def __init__(self, tracer_provider: TracerProvider, crash_reporter: CrashReporter):
        self.tracer_provider = tracer_provider
        self.crash_reporter = crash_reporter
        self._closed = False

    def shutdown(self) -> None:
        """Flush pending spans and release the hooks. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            self.tracer_provider.force_flush()
            self.tracer_provider.shutdown()
        finally:
            self.crash_reporter.uninstall()
        logger.debug("Telemetry shut down")


def configure_propagation() -> None:
    """Propagate trace context with the Jaeger ``uber-trace-id`` header."""
    propagate.set_global_textmap(JaegerPropagator())


def build_tracer_provider(
    config: Settings, span_exporter: Optional[SpanExporter] = None
) -> TracerProvider:
    provider = TracerProvider(resource=Resource.create({"service.name": config.SERVICE_NAME}))
    if span_exporter is None and config.TRACING_ENABLED:
        # Endpoint and headers come from the standard OTEL_EXPORTER_OTLP_* variables
        span_exporter = OTLPSpanExporter()
    if span_exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(span_exporter))
    return provider


def setup_telemetry(
    config: Settings = default_settings, span_exporter: Optional[SpanExporter] = None
) -> Telemetry:
    """Install crash reporting, logging, propagation and the global tracer provider.

    Raises whatever the underlying setup raises (e.g. ``ValueError`` for an
    invalid ``LOG_LEVEL``); callers treat that as a fatal startup error.
    """
    crash_reporter = CrashReporter(issue_url=config.ISSUE_URL)
    crash_reporter.install()
    try:
        setup_logging(config.LOG_LEVEL, config.LOG_FILE)
        configure_propagation()
        provider = build_tracer_provider(config, span_exporter)
        trace.set_tracer_provider(provider)
    except Exception:
        crash_reporter.uninstall()
        raise

    logger.info(
        "Telemetry ready (service=%s, tracing=%s)",
        config.SERVICE_NAME,
        "on" if config.TRACING_ENABLED or span_exporter is not None else "off",
    )
    return Telemetry(provider, crash_reporter)
