"""
Lifecycle events for mockworker.

Wraps pyee's EventEmitter so test code can observe what the worker does
with each request without reaching into the engine.

Example:
    >>> worker = setup_worker(get_book)
    >>> seen = []
    >>> worker.events.on(EventNames.REQUEST_UNHANDLED, lambda payload: seen.append(payload))

Listeners are called synchronously with a single dict payload. A listener
that raises is logged and does not affect resolution or other listeners.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyee.base import EventEmitter

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], Any]


class EventNames:
    """Event names emitted during resolution.

    Attributes:
        REQUEST_START: A request entered resolution.
        REQUEST_MATCH: A handler produced a response for the request.
        REQUEST_UNHANDLED: No handler claimed the request.
        REQUEST_END: Resolution finished, handled or not.
        RESPONSE_MOCKED: A mocked response is being returned.
        HANDLER_ERROR: A predicate or resolver raised.
    """

    REQUEST_START = "request:start"
    REQUEST_MATCH = "request:match"
    REQUEST_UNHANDLED = "request:unhandled"
    REQUEST_END = "request:end"
    RESPONSE_MOCKED = "response:mocked"
    HANDLER_ERROR = "handler:error"

    ALL = (
        REQUEST_START,
        REQUEST_MATCH,
        REQUEST_UNHANDLED,
        REQUEST_END,
        RESPONSE_MOCKED,
        HANDLER_ERROR,
    )


class LifecycleEvents:
    """Pub/sub channel for resolution lifecycle events."""

    def __init__(self) -> None:
        self._emitter = EventEmitter()
        self._wrappers: dict[tuple[str, Listener], list[Callable[..., Any]]] = {}

    def _wrap(self, event: str, listener: Listener, once: bool = False) -> Callable[..., Any]:
        def guarded(payload: dict[str, Any]) -> None:
            if once:
                self._forget(event, listener, guarded)
            try:
                listener(payload)
            except Exception:
                logger.exception(f"Listener for {event} raised")

        self._wrappers.setdefault((event, listener), []).append(guarded)
        return guarded

    def _forget(self, event: str, listener: Listener, guarded: Callable[..., Any]) -> None:
        wrappers = self._wrappers.get((event, listener))
        if wrappers is None:
            return
        if guarded in wrappers:
            wrappers.remove(guarded)
        if not wrappers:
            del self._wrappers[(event, listener)]

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe to an event. Returns the listener for use with off()."""
        self._emitter.on(event, self._wrap(event, listener))
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Subscribe to the next occurrence of an event only."""
        self._emitter.once(event, self._wrap(event, listener, once=True))
        return listener

    def off(self, event: str, listener: Listener) -> None:
        """Unsubscribe a listener previously passed to on() or once()."""
        for guarded in self._wrappers.pop((event, listener), []):
            try:
                self._emitter.remove_listener(event, guarded)
            except KeyError:
                # once() listeners remove themselves after firing
                pass

    def remove_all_listeners(self, event: str | None = None) -> None:
        self._emitter.remove_all_listeners(event)
        if event is None:
            self._wrappers.clear()
        else:
            for key in [k for k in self._wrappers if k[0] == event]:
                del self._wrappers[key]

    def listeners(self, event: str) -> list[Callable[..., Any]]:
        return self._emitter.listeners(event)

    def emit(self, event: str, **payload: Any) -> None:
        self._emitter.emit(event, payload)


__all__ = ["EventNames", "LifecycleEvents", "Listener"]
