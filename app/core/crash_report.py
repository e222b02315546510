"""Crash reporting for unhandled exceptions.

Turns an exception into a readable report (message, location, traceback,
guidance for the reader and an optional link to file an issue) and writes
it to the log. The reporter is hooked into ``sys.excepthook`` and
``threading.excepthook`` for process-level crashes, and is called by
``PanicReportMiddleware`` for faults raised while handling a request.
"""

import sys
import threading
import traceback
from typing import Optional
from urllib.parse import urlencode

from opentelemetry import trace

from app.core.logging_config import get_logger

logger = get_logger(__name__)

PANIC_SECTION = (
    "    - Reporting this issue to the repository\n"
    "    - If a developer, review Jaeger traces and provide extra information to issue submissions"
)


class CrashReporter:
    """Formats and emits crash reports.

    Args:
        issue_url: Link to the issue tracker's "new issue" page, or None
            to leave the link out of reports
        section: Guidance text appended to every report
    """

    def __init__(self, issue_url: Optional[str] = None, section: str = PANIC_SECTION):
        self.issue_url = issue_url
        self.section = section
        self._previous_excepthook = None
        self._previous_threading_excepthook = None

    @property
    def installed(self) -> bool:
        return self._previous_excepthook is not None

    def issue_link(self, exc: BaseException) -> Optional[str]:
        if not self.issue_url:
            return None
        query = urlencode({
            "title": f"{type(exc).__name__}: {exc}",
            "body": f"## Error\n{exc}\n\n## Location\n{self.location(exc)}",
        })
        return f"{self.issue_url}?{query}"

    @staticmethod
    def location(exc: BaseException) -> str:
        frames = traceback.extract_tb(exc.__traceback__)
        if not frames:
            return "<unknown>"
        last = frames[-1]
        return f"{last.filename}:{last.lineno}"

    def format_report(self, exc: BaseException) -> str:
        lines = [
            "The application panicked (crashed).",
            f"Message:  {exc}",
            f"Location: {self.location(exc)}",
            "",
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip(),
            "",
            self.section,
        ]
        link = self.issue_link(exc)
        if link:
            lines += ["", "Consider reporting the bug at:", link]
        return "\n".join(lines)

    def report(self, exc: BaseException) -> None:
        """Log the report and attach the exception to the active span."""
        span = trace.get_current_span()
        if span.is_recording():
            span.record_exception(exc)
        logger.error(self.format_report(exc))

    def _excepthook(self, exc_type, exc, tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            self._previous_excepthook(exc_type, exc, tb)
            return
        if exc.__traceback__ is None:
            exc = exc.with_traceback(tb)
        self.report(exc)

    def _threading_excepthook(self, args) -> None:
        if args.exc_value is None or issubclass(args.exc_type, SystemExit):
            self._previous_threading_excepthook(args)
            return
        self.report(args.exc_value)

    def install(self) -> None:
        if self.installed:
            return
        self._previous_excepthook = sys.excepthook
        self._previous_threading_excepthook = threading.excepthook
        sys.excepthook = self._excepthook
        threading.excepthook = self._threading_excepthook

    def uninstall(self) -> None:
        if not self.installed:
            return
        sys.excepthook = self._previous_excepthook
        threading.excepthook = self._previous_threading_excepthook
        self._previous_excepthook = None
        self._previous_threading_excepthook = None
