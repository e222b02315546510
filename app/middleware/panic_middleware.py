"""Reports faults raised by request handlers before they reach the server."""

from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.crash_report import CrashReporter


class PanicReportMiddleware(BaseHTTPMiddleware):
    """Hands any exception escaping the handler to the crash reporter.

    The exception is re-raised, so the request still ends in the
    framework's server-error response and only that request is affected.
    """

    def __init__(self, app: ASGIApp, crash_reporter: Optional[CrashReporter] = None):
        super().__init__(app)
        self.crash_reporter = crash_reporter or CrashReporter()

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            self.crash_reporter.report(exc)
            raise
