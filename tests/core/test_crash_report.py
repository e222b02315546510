"""
Tests for the crash reporter
"""
import sys
import threading
from urllib.parse import parse_qs, urlparse

import pytest
from opentelemetry import trace

from app.core.crash_report import PANIC_SECTION, CrashReporter
from app.core.exceptions import PanicError


def _raised(exc):
    try:
        raise exc
    except BaseException as caught:
        return caught


class TestFormatReport:
    """Test suite for CrashReporter.format_report()"""

    def test_contains_message_location_and_guidance(self):
        exc = _raised(PanicError("Everything is on fire!"))

        report = CrashReporter().format_report(exc)

        assert report.startswith("The application panicked (crashed).")
        assert "Message:  Everything is on fire!" in report
        assert f"Location: {__file__}:" in report
        assert "Traceback (most recent call last)" in report
        assert PANIC_SECTION in report

    def test_no_link_without_issue_url(self):
        report = CrashReporter().format_report(_raised(PanicError("boom")))
        assert "Consider reporting the bug" not in report

    def test_link_carries_title_and_body(self):
        reporter = CrashReporter(issue_url="https://tracker.example/issues/new")
        exc = _raised(PanicError("boom"))

        link = reporter.issue_link(exc)

        parsed = urlparse(link)
        query = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://tracker.example/issues/new"
        assert query["title"] == ["PanicError: boom"]
        assert "boom" in query["body"][0]
        assert link in reporter.format_report(exc)

    def test_exception_without_traceback(self):
        assert CrashReporter.location(PanicError("never raised")) == "<unknown>"


class TestReport:
    """Test suite for CrashReporter.report()"""

    def test_logs_at_error(self, caplog):
        with caplog.at_level("ERROR", logger="app.core.crash_report"):
            CrashReporter().report(_raised(PanicError("boom")))

        assert len(caplog.records) == 1
        assert "Message:  boom" in caplog.records[0].getMessage()

    def test_records_exception_on_active_span(self, span_exporter):
        tracer = trace.get_tracer(__name__)

        with tracer.start_as_current_span("request"):
            CrashReporter().report(_raised(PanicError("boom")))

        span = span_exporter.get_finished_spans()[0]
        assert [event.name for event in span.events] == ["exception"]
        assert span.events[0].attributes["exception.message"] == "boom"


class TestInstall:
    """Test suite for CrashReporter.install()/uninstall()"""

    @pytest.fixture
    def reporter(self):
        reporter = CrashReporter()
        yield reporter
        reporter.uninstall()

    def test_hooks_and_restores(self, reporter):
        previous_hook = sys.excepthook
        previous_thread_hook = threading.excepthook

        reporter.install()
        assert reporter.installed
        assert sys.excepthook == reporter._excepthook
        assert threading.excepthook == reporter._threading_excepthook

        reporter.uninstall()
        assert not reporter.installed
        assert sys.excepthook is previous_hook
        assert threading.excepthook is previous_thread_hook

    def test_install_twice_keeps_original_hook(self, reporter):
        previous_hook = sys.excepthook

        reporter.install()
        reporter.install()
        reporter.uninstall()

        assert sys.excepthook is previous_hook

    def test_uncaught_thread_exception_is_reported(self, reporter, caplog):
        reporter.install()

        def crash():
            raise PanicError("thread on fire")

        with caplog.at_level("ERROR", logger="app.core.crash_report"):
            worker = threading.Thread(target=crash)
            worker.start()
            worker.join()

        assert any("Message:  thread on fire" in message for message in caplog.messages)

    def test_process_excepthook_reports(self, reporter, caplog):
        reporter.install()
        exc = _raised(PanicError("process on fire"))

        with caplog.at_level("ERROR", logger="app.core.crash_report"):
            sys.excepthook(type(exc), exc, exc.__traceback__)

        assert any("Message:  process on fire" in message for message in caplog.messages)
