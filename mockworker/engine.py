"""
Resolution Engine for mockworker.

Given one intercepted request, picks the handler that answers it:

1. Snapshot the active handlers (runtime handlers first, newest first,
   then initial handlers in their supplied order).
2. Scan the snapshot; the first handler whose predicate is true runs its
   resolver.
3. A concrete answer ends the scan. Single-use handlers are consumed at
   that point, unless a reset or restore happened while
   the resolver ran. A pass continues the scan with the next handler.
4. If nobody answers, the request is unhandled and goes wherever the
   transport's policy sends unmocked traffic.

Failures never escape: a raising predicate counts as "no match", a raising
resolver makes the request unhandled. Both are logged with traceback and
emitted as HANDLER_ERROR events.

The handler list lock is held only for the snapshot and for consumption,
never while a predicate or resolver runs.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from .errors import HandlerExecutionError, PredicateError, ResolverError
from .events import EventNames, LifecycleEvents
from .handler import Handler, Respond, maybe_await, to_respond
from .handler_list import HandlerList
from .observability import ResolutionLogger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving one request.

    Either handled (``handler`` and ``response`` set) or unhandled. An
    unhandled resolution caused by a failing resolver carries the failure
    in ``error``.
    """

    request: Any
    request_id: str
    response: Any = None
    handler: Handler | None = None
    error: ResolverError | None = None
    predicate_errors: tuple[PredicateError, ...] = ()

    @property
    def handled(self) -> bool:
        return self.handler is not None

    @property
    def unhandled(self) -> bool:
        return self.handler is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "handled": self.handled,
            "handler": self.handler.to_dict() if self.handler else None,
            "error": str(self.error) if self.error else None,
            "predicate_errors": [str(e) for e in self.predicate_errors],
        }


def _run_sync(value: Any) -> Any:
    """Drive an awaitable to completion from synchronous code."""
    if not inspect.isawaitable(value):
        return value
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(maybe_await(value))
    if inspect.iscoroutine(value):
        value.close()
    raise RuntimeError(
        "Handler returned an awaitable inside a running event loop; "
        "use 'await resolve(request)' instead of resolve_sync()"
    )


class ResolutionEngine:
    """
    Selects and runs the handler for each request.

    Example:
        engine = ResolutionEngine(HandlerList([get_book]))
        resolution = await engine.resolve(request)
        if resolution.handled:
            return resolution.response
    """

    def __init__(
        self,
        handlers: HandlerList,
        *,
        resolution_logger: ResolutionLogger | None = None,
        events: LifecycleEvents | None = None,
    ) -> None:
        self._handlers = handlers
        self._log = resolution_logger or ResolutionLogger()
        self._events = events

    @property
    def handlers(self) -> HandlerList:
        return self._handlers

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    async def resolve(self, request: Any) -> Resolution:
        """Resolve a request, awaiting async predicates and resolvers."""
        request_id, generation, snapshot = self._start(request)
        predicate_errors: list[PredicateError] = []

        for handler in snapshot:
            try:
                matched = bool(await maybe_await(handler.predicate(request)))
            except Exception as exc:
                self._predicate_failed(handler, request, request_id, exc, predicate_errors)
                continue
            if not matched:
                continue

            try:
                outcome = to_respond(await maybe_await(handler.resolver(request)))
            except Exception as exc:
                return self._resolver_failed(handler, request, request_id, exc, predicate_errors)

            resolution = self._settle(
                handler, outcome, request, request_id, generation, predicate_errors
            )
            if resolution is not None:
                return resolution

        return self._unhandled(request, request_id, predicate_errors)

    def resolve_sync(self, request: Any) -> Resolution:
        """
        Resolve a request from synchronous code.

        Awaitable predicate or resolver results are run with asyncio.run()
        when no event loop is running in this thread.
        """
        request_id, generation, snapshot = self._start(request)
        predicate_errors: list[PredicateError] = []

        for handler in snapshot:
            try:
                matched = bool(_run_sync(handler.predicate(request)))
            except Exception as exc:
                self._predicate_failed(handler, request, request_id, exc, predicate_errors)
                continue
            if not matched:
                continue

            try:
                outcome = to_respond(_run_sync(handler.resolver(request)))
            except Exception as exc:
                return self._resolver_failed(handler, request, request_id, exc, predicate_errors)

            resolution = self._settle(
                handler, outcome, request, request_id, generation, predicate_errors
            )
            if resolution is not None:
                return resolution

        return self._unhandled(request, request_id, predicate_errors)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _start(self, request: Any) -> tuple[str, int, tuple[Handler, ...]]:
        request_id = uuid4().hex
        generation, snapshot = self._handlers.snapshot()
        logger.debug(f"Resolving request {request_id[:8]} against {len(snapshot)} handler(s)")
        self._emit(EventNames.REQUEST_START, request=request, request_id=request_id)
        return request_id, generation, snapshot

    def _settle(
        self,
        handler: Handler,
        outcome: Respond | None,
        request: Any,
        request_id: str,
        generation: int,
        predicate_errors: list[PredicateError],
    ) -> Resolution | None:
        """Turn a matched handler's outcome into a Resolution, or None to keep scanning."""
        if outcome is None:
            self._log.handler_passed(handler, request_id)
            return None

        single_use = handler.is_one_time or outcome.once
        if single_use:
            if not self._handlers.claim(
                handler, declared_once=outcome.once, generation=generation
            ):
                self._log.consumed_concurrently(handler, request_id)
                return None
            self._log.one_time_consumed(handler, request_id)

        self._log.handler_matched(handler, request_id)
        resolution = Resolution(
            request=request,
            request_id=request_id,
            response=outcome.response,
            handler=handler,
            predicate_errors=tuple(predicate_errors),
        )
        self._emit(
            EventNames.REQUEST_MATCH,
            request=request,
            request_id=request_id,
            handler=handler,
        )
        self._emit(
            EventNames.RESPONSE_MOCKED,
            request=request,
            request_id=request_id,
            handler=handler,
            response=outcome.response,
        )
        self._emit(EventNames.REQUEST_END, request=request, request_id=request_id, resolution=resolution)
        return resolution

    def _predicate_failed(
        self,
        handler: Handler,
        request: Any,
        request_id: str,
        exc: Exception,
        predicate_errors: list[PredicateError],
    ) -> None:
        error = PredicateError(handler.display_name, request_id, exc)
        predicate_errors.append(error)
        self._log.predicate_failed(error)
        self._emit_error(error, handler, request)

    def _resolver_failed(
        self,
        handler: Handler,
        request: Any,
        request_id: str,
        exc: Exception,
        predicate_errors: list[PredicateError],
    ) -> Resolution:
        error = ResolverError(handler.display_name, request_id, exc)
        self._log.resolver_failed(error)
        self._emit_error(error, handler, request)
        return self._unhandled(request, request_id, predicate_errors, error=error)

    def _unhandled(
        self,
        request: Any,
        request_id: str,
        predicate_errors: list[PredicateError],
        error: ResolverError | None = None,
    ) -> Resolution:
        resolution = Resolution(
            request=request,
            request_id=request_id,
            error=error,
            predicate_errors=tuple(predicate_errors),
        )
        self._log.request_unhandled(request_id, request)
        self._emit(EventNames.REQUEST_UNHANDLED, request=request, request_id=request_id)
        self._emit(EventNames.REQUEST_END, request=request, request_id=request_id, resolution=resolution)
        return resolution

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _emit(self, event: str, **payload: Any) -> None:
        if self._events is not None:
            self._events.emit(event, **payload)

    def _emit_error(self, error: HandlerExecutionError, handler: Handler, request: Any) -> None:
        self._emit(
            EventNames.HANDLER_ERROR,
            request=request,
            request_id=error.request_id,
            handler=handler,
            stage=error.stage,
            error=error,
        )


__all__ = ["Resolution", "ResolutionEngine"]
