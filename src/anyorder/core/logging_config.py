"""Process-wide logging setup for anyorder.

Only the composition root calls `configure_logging`. Library code emits
through `LoggingPort` or module loggers and never touches handlers.

Every record carries the id of the invocation whose attempt produced it.
The id travels in a context variable; worker threads start with an empty
context, so the dispatcher sets it around each attempt and anything logged
outside an attempt shows "-".
"""

from __future__ import annotations

import contextvars
import logging
import sys
from typing import IO, Optional

invocation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "invocation_id", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s [%(threadName)s] %(invocation_id)s: %(message)s"
)


def coerce_level(level: int | str | None) -> int:
    """Map a level name or number to a numeric level; unknown names mean INFO."""
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(str(level).upper().strip(), logging.INFO)


class _InvocationIdFilter(logging.Filter):
    """Stamp the current invocation id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.invocation_id = invocation_id_var.get()
        return True


class _LevelRangeFilter(logging.Filter):
    """Pass records whose level lies within [low, high]."""

    def __init__(self, low: int = logging.NOTSET, high: int = logging.CRITICAL):
        super().__init__()
        self.low = low
        self.high = high

    def filter(self, record: logging.LogRecord) -> bool:
        return self.low <= record.levelno <= self.high


def _stream_handler(
    stream: IO[str],
    low: int,
    high: int,
    formatter: logging.Formatter,
    id_filter: logging.Filter,
) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setLevel(low)
    handler.addFilter(_LevelRangeFilter(low, high))
    handler.addFilter(id_filter)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    quiet_scheduler: bool = True,
) -> None:
    """Install stdout (DEBUG/INFO) and stderr (WARNING+) sinks on the root logger.

    Handlers installed earlier are replaced, so calling this twice does not
    duplicate output. With ``quiet_scheduler`` APScheduler only reports
    warnings, instead of a line for every retry it releases.
    """
    numeric_level = coerce_level(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)
    id_filter = _InvocationIdFilter()

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.addHandler(_stream_handler(sys.stdout, logging.DEBUG, logging.INFO, formatter, id_filter))
    root.addHandler(
        _stream_handler(sys.stderr, logging.WARNING, logging.CRITICAL, formatter, id_filter)
    )

    if quiet_scheduler:
        logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logging.getLogger("anyorder").debug(
        "Logging configured level=%s quiet_scheduler=%s", numeric_level, quiet_scheduler
    )
