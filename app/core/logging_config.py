import logging
from logging.handlers import RotatingFileHandler
from typing import Dict, List, Optional, Tuple

from opentelemetry import trace

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(trace_id)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Python has no TRACE level, so it folds into DEBUG
LEVELS: Dict[str, int] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "off": logging.CRITICAL + 10,
}

_installed_handlers: List[logging.Handler] = []


class TraceContextFilter(logging.Filter):
    """Stamp each record with the trace id of the span active when it was emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        record.trace_id = format(ctx.trace_id, "032x") if ctx.is_valid else "-"
        return True


def _level(name: str) -> int:
    try:
        return LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {name!r}") from None


def parse_log_filter(spec: Optional[str]) -> Tuple[int, Dict[str, int]]:
    """Parse a log filter such as ``"warn,app.api=debug"``.

    Returns the root level and a mapping of logger name to level.
    """
    root_level = logging.INFO
    overrides: Dict[str, int] = {}
    for directive in (spec or "").split(","):
        directive = directive.strip()
        if not directive:
            continue
        if "=" in directive:
            name, _, level = directive.partition("=")
            if not name.strip():
                raise ValueError(f"Missing logger name in directive: {directive!r}")
            overrides[name.strip()] = _level(level)
        else:
            root_level = _level(directive)
    return root_level, overrides


def setup_logging(filter_spec: Optional[str], log_file: Optional[str] = None) -> None:
    """Configure the root logger. Safe to call more than once."""
    root_level, overrides = parse_log_filter(filter_spec)

    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=(10 * 1024 * 1024),   # 10MB per file
                backupCount=7,                 # Last 7 rotated logs kept
                encoding="utf-8"
            )
        )

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(TraceContextFilter())
        root.addHandler(handler)
        _installed_handlers.append(handler)

    root.setLevel(root_level)
    for name, level in overrides.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger with the given module name."""
    return logging.getLogger(name)
