"""Structured logging for cardid: structlog on top of the stdlib root logger."""

import logging
import sys
import time
from typing import Any, Dict, Optional

import structlog

from . import config

# Everything except the final renderer, so the chain can be reused with another renderer
SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _configured_level() -> int:
    """LOG_LEVEL as a stdlib level; unknown names fall back to INFO."""
    level = logging.getLevelName(str(config.settings.LOG_LEVEL).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging():
    """Send JSON log lines to stdout at the configured level."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=_configured_level())

    structlog.configure(
        processors=[*SHARED_PROCESSORS, structlog.processors.JSONRenderer()],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)


def _fields(context: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in context.items() if k not in ("event", "start_time")}


def _with_duration(context: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    if "start_time" not in context:
        return fields
    return {**fields, "duration_ms": int((time.perf_counter() - context["start_time"]) * 1000)}


class LoggerMixin:
    """Per-class structlog logger plus start/success/error helpers for timed operations.

    ``log_start`` returns a context dict; hand it to ``log_success`` or
    ``log_error`` to emit the matching line with ``duration_ms``.
    """

    @property
    def logger(self) -> structlog.BoundLogger:
        logger = self.__dict__.get("_logger")
        if logger is None:
            logger = self._logger = get_logger(type(self).__name__)
        return logger

    def log_start(self, event: str, **kwargs: Any) -> Dict[str, Any]:
        context = {"event": event, "start_time": time.perf_counter(), **kwargs}
        self.logger.info(f"{event} started", **_fields(context))
        return context

    def log_success(self, context: Dict[str, Any], **kwargs: Any):
        event = context.get("event", "operation")
        self.logger.info(f"{event} completed", **_fields(context), **_with_duration(context, kwargs))

    def log_error(self, context: Dict[str, Any], error: Exception, **kwargs: Any):
        event = context.get("event", "operation")
        self.logger.error(
            f"{event} failed",
            **_fields(context),
            error=str(error),
            error_type=type(error).__name__,
            **_with_duration(context, kwargs),
        )
