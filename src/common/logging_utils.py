"""Logging helpers shared by the scanner, the resolution pipeline and the CLI.

Components log through module-level loggers. DEBUG traces carry structured
fields passed with ``extra=extra_context(...)``; the console formatter renders
them as ``key=value`` pairs after the message.
"""
from __future__ import annotations

import logging
import sys
import time
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_ATTR = "depstage_context"


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records.

    ``None`` values are dropped so traces only show what was known.
    """
    return {_CONTEXT_ATTR: {k: v for k, v in fields.items() if v is not None}}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


class ContextFormatter(logging.Formatter):
    """Formatter appending structured context fields to the message."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = getattr(record, _CONTEXT_ATTR, None)
        if not context:
            return base
        rendered = " ".join(f"{k}={context[k]}" for k in sorted(context))
        return f"{base} [{rendered}]"


def configure_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    quiet: bool = False,
) -> None:
    """Configure the root logger for a CLI invocation.

    Args:
        level: Log level name (DEBUG, INFO, ...).
        logfile: Optional file receiving log output in addition to stderr.
        quiet: Suppress console output (file logging still applies).
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    formatter = ContextFormatter(Constants.LOG_FORMAT)
    if not quiet:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        root.addHandler(console)
    if logfile:
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    if quiet and not logfile:
        root.addHandler(logging.NullHandler())


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
