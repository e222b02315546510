"""
Demo Server

A small HTTP server with three routes (a greeting, a deliberate crash and
a wrapping factorial) plus the project manifest on /cargo, wrapped in
tracing, crash reporting, a concurrency limit, a request timeout and
graceful shutdown on SIGINT/SIGTERM.

Environment Variables:
    LOG_LEVEL: Log filter (default: info). Either a level (trace, debug,
               info, warn, error, critical, off) or directives such as
               "warn,app.api=debug"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Where spans are exported
               (read by the OpenTelemetry exporter itself)

CLI Usage:
    python main.py

    # Verbose request logging
    LOG_LEVEL=debug python main.py
"""

import asyncio
import sys

from app.app import create_app
from app.core.config import settings
from app.core.logging_config import get_logger
from app.core.telemetry import setup_telemetry
from app.server import serve

logger = get_logger("main")


def _log_level_probe() -> None:
    """Emit one line per level so the active filter is visible at startup."""
    logger.error("Hello!")
    logger.warning("Hello!")
    logger.info("Hello!")
    logger.debug("Hello!")


def main() -> int:
    try:
        telemetry = setup_telemetry(settings)
    except Exception as e:
        logger.critical(f"Failed to initialise telemetry: {e}")
        return 1

    try:
        _log_level_probe()
        application = create_app(settings, crash_reporter=telemetry.crash_reporter)
        asyncio.run(serve(application, settings))
    finally:
        telemetry.shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(main())
