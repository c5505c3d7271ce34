"""Structured logging configuration using *structlog*.

The inference core logs through structlog and additionally forwards each
record to an optional host callback ``(level, message, context)``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable

import structlog

from wearable_emotion.config import get_settings
from wearable_emotion.models import LogLevel

LogCallback = Callable[[LogLevel, str, dict[str, Any] | None], None]

_STRUCTLOG_METHODS = {
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
}


def setup_logging(level: str | None = None) -> None:
    """Configure *structlog* processors and stdlib integration.

    Call once at application startup.  *level* defaults to
    ``WEARABLE_EMOTION_LOG_LEVEL`` from :func:`get_settings`.
    """
    if level is None:
        level = get_settings().log_level
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


class LogEmitter:
    """Send a log record to structlog and to the host callback, if any."""

    def __init__(self, name: str, callback: LogCallback | None = None) -> None:
        self._logger = structlog.get_logger(name)
        self.callback = callback

    def __call__(
        self,
        level: LogLevel,
        event: str,
        message: str,
        **context: Any,
    ) -> None:
        getattr(self._logger, _STRUCTLOG_METHODS[level])(event, message=message, **context)
        if self.callback is None:
            return
        try:
            self.callback(level, message, context or None)
        except Exception as exc:
            self._logger.error("log_callback.error", error=str(exc))

    def debug(self, event: str, message: str, **context: Any) -> None:
        self(LogLevel.DEBUG, event, message, **context)

    def info(self, event: str, message: str, **context: Any) -> None:
        self(LogLevel.INFO, event, message, **context)

    def warn(self, event: str, message: str, **context: Any) -> None:
        self(LogLevel.WARN, event, message, **context)

    def error(self, event: str, message: str, **context: Any) -> None:
        self(LogLevel.ERROR, event, message, **context)
