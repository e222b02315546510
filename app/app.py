from typing import Optional

from fastapi import FastAPI

from app.api import router as api_router
from app.core.config import Settings, settings as default_settings
from app.core.crash_report import CrashReporter
from app.core.logging_config import get_logger
from app.middleware import (
    ConcurrencyLimitMiddleware,
    PanicReportMiddleware,
    TimeoutMiddleware,
    TracingMiddleware,
)

logger = get_logger("app")


def create_app(
    config: Settings = default_settings,
    crash_reporter: Optional[CrashReporter] = None,
) -> FastAPI:
    """Build the application with its middleware chain.

    Request path, outermost first: tracing, crash reporting, timeout,
    concurrency limit, router. The timeout covers time spent waiting for
    a concurrency slot.
    """
    app = FastAPI(
        title=config.PROJECT_NAME,
        description="Demo server with tracing, crash reporting and graceful shutdown",
        version=config.VERSION,
        # Server spans come from TracingMiddleware only
        telemetry={"tracing": False, "operation_spans": False},
    )
    app.state.settings = config

    # add_middleware wraps the current stack, so the last one added runs first
    app.add_middleware(ConcurrencyLimitMiddleware, limit=config.CONCURRENCY_LIMIT)
    app.add_middleware(TimeoutMiddleware, timeout=config.REQUEST_TIMEOUT)
    app.add_middleware(
        PanicReportMiddleware,
        crash_reporter=crash_reporter or CrashReporter(issue_url=config.ISSUE_URL),
    )
    app.add_middleware(TracingMiddleware)

    app.include_router(api_router)

    logger.debug(
        f"App built (concurrency_limit={config.CONCURRENCY_LIMIT}, "
        f"request_timeout={config.REQUEST_TIMEOUT}s)"
    )
    return app


app = create_app()
