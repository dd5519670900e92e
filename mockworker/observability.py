"""
Observability for mockworker.

Structured, JSON-formatted diagnostics for resolution decisions. Handler
failures are always reported here with their traceback so that treating
them as "no match" or "unhandled" never hides them from the developer.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .errors import HandlerExecutionError
    from .handler import Handler

logger = logging.getLogger(__name__)


# =============================================================================
# Log Levels
# =============================================================================


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LEVELNO = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger(Protocol):
    """Protocol for loggers that take key-value context."""

    def debug(self, message: str, **context: Any) -> None: ...

    def info(self, message: str, **context: Any) -> None: ...

    def warning(self, message: str, **context: Any) -> None: ...

    def error(self, message: str, exc_info: BaseException | None = None, **context: Any) -> None: ...


@dataclass
class JSONLogger:
    """
    Structured logger that writes one JSON document per record.

    Records go to the stdlib logger named ``name``, so handlers, levels and
    pytest's caplog apply as usual. Records for disabled levels are not
    serialized at all. An ``exc_info`` exception is attached as a traceback
    and summarized in the ``error_type``/``error`` fields.

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
         "message": "Handler matched", "handler": "GET /book/:id",
         "request_id": "3f2a..."}
    """

    name: str = "mockworker"
    extra_context: dict[str, Any] = field(default_factory=dict)

    @property
    def target(self) -> logging.Logger:
        return logging.getLogger(self.name)

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: dict[str, Any],
        exc_info: BaseException | None = None,
    ) -> None:
        target = self.target
        levelno = _LEVELNO[level]
        if not target.isEnabledFor(levelno):
            return

        document: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "message": message,
        }
        document.update(self.extra_context)
        document.update(context)
        if exc_info is not None:
            document.setdefault("error_type", type(exc_info).__name__)
            document.setdefault("error", str(exc_info))

        target.log(levelno, json.dumps(document, default=str), exc_info=exc_info)

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, exc_info: BaseException | None = None, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context, exc_info=exc_info)

    def with_context(self, **extra: Any) -> JSONLogger:
        """Same target logger, with ``extra`` added to every record."""
        return replace(self, extra_context={**self.extra_context, **extra})


# =============================================================================
# Resolution Logger
# =============================================================================


@dataclass
class ResolutionLogger:
    """
    Logger with one method per resolution event.

    With quiet=True the info-level match messages are suppressed; failures
    and unhandled warnings are still written.
    """

    inner: StructuredLogger = field(default_factory=JSONLogger)
    quiet: bool = False

    def handler_matched(self, handler: Handler, request_id: str) -> None:
        if self.quiet:
            return
        self.inner.info(
            "Handler matched",
            handler=handler.display_name,
            handler_id=str(handler.id),
            lifecycle=handler.lifecycle.value,
            request_id=request_id,
        )

    def handler_passed(self, handler: Handler, request_id: str) -> None:
        self.inner.debug(
            "Handler passed",
            handler=handler.display_name,
            request_id=request_id,
        )

    def one_time_consumed(self, handler: Handler, request_id: str) -> None:
        self.inner.debug(
            "One-time handler consumed",
            handler=handler.display_name,
            request_id=request_id,
        )

    def consumed_concurrently(self, handler: Handler, request_id: str) -> None:
        self.inner.debug(
            "One-time handler already consumed by a concurrent request, discarding response",
            handler=handler.display_name,
            request_id=request_id,
        )

    def predicate_failed(self, error: HandlerExecutionError) -> None:
        self.inner.error(
            "Predicate raised, treating as no match",
            exc_info=error.cause,
            handler=error.handler_name,
            request_id=error.request_id,
            error_type=type(error.cause).__name__,
            error_message=str(error.cause),
        )

    def resolver_failed(self, error: HandlerExecutionError) -> None:
        self.inner.error(
            "Resolver raised, treating request as unhandled",
            exc_info=error.cause,
            handler=error.handler_name,
            request_id=error.request_id,
            error_type=type(error.cause).__name__,
            error_message=str(error.cause),
        )

    def request_unhandled(self, request_id: str, request: Any) -> None:
        self.inner.debug(
            "No handler claimed request",
            request_id=request_id,
            request=_describe_request(request),
        )

    def handlers_changed(self, action: str, count: int) -> None:
        self.inner.debug("Handlers changed", action=action, count=count)


def _describe_request(request: Any) -> str:
    method = getattr(request, "method", None)
    url = getattr(request, "url", None)
    if method is not None and url is not None:
        return f"{method} {url}"
    return repr(request)


__all__ = [
    "LogLevel",
    "StructuredLogger",
    "JSONLogger",
    "ResolutionLogger",
]
