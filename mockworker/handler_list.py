"""
Handler List for mockworker.

Ordered, shared collection of handlers with two origins:

- initial handlers, supplied at setup, kept in their supplied order
- runtime handlers, added later with prepend(), always scanned first and
  most-recently-added first

Thread safety:
    Every read and write goes through one lock. The lock is held only for
    the duration of a snapshot copy or a flag update, never while a
    predicate or resolver runs, so it is safe to use from threads and from
    asyncio tasks alike.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from .handler import Handler

logger = logging.getLogger(__name__)


class HandlerList:
    """
    Ordered handler collection with one-time consumption tracking.

    Consumed ONE_TIME handlers remain in list_handlers() for inspection
    but are excluded from active_handlers().

    Example:
        handlers = HandlerList([get_book])
        handlers.prepend([post_review])
        handlers.active_handlers()  # (post_review, get_book)
        handlers.reset()
        handlers.active_handlers()  # (get_book,)
    """

    def __init__(self, initial: Iterable[Handler] = ()) -> None:
        self._initial: tuple[Handler, ...] = tuple(initial)
        self._handlers: list[Handler] = list(self._initial)
        self._consumed: set[Handler] = set()
        self._generation = 0
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def prepend(self, handlers: Iterable[Handler]) -> None:
        """
        Insert handlers ahead of everything currently present.

        The given handlers keep their relative order. The whole batch becomes
        visible at once.
        """
        batch = list(handlers)
        if not batch:
            return
        with self._lock:
            self._handlers[:0] = batch
            total = len(self._handlers)
        logger.debug(f"Prepended {len(batch)} handler(s), {total} total")

    def reset(self, next_handlers: Iterable[Handler] | None = None) -> None:
        """
        Restore the initial handlers and clear every consumed flag.

        Args:
            next_handlers: Optional replacement baseline. When given it becomes
                the new initial configuration for this and later resets.
        """
        with self._lock:
            if next_handlers is not None:
                self._initial = tuple(next_handlers)
            self._handlers = list(self._initial)
            self._consumed.clear()
            self._generation += 1
            total = len(self._handlers)
        logger.debug(f"Reset handlers to {total} initial handler(s)")

    def restore(self) -> None:
        """Re-arm consumed one-time handlers, keeping runtime handlers."""
        with self._lock:
            restored = len(self._consumed)
            self._consumed.clear()
            self._generation += 1
        logger.debug(f"Restored {restored} consumed handler(s)")

    def _consume(
        self, handler: Handler, declared_once: bool, generation: int | None = None
    ) -> str:
        if not (handler.is_one_time or declared_once):
            return "permanent"
        with self._lock:
            if generation is not None and generation != self._generation:
                return "stale"
            if handler in self._consumed:
                return "already_consumed"
            if not any(h is handler for h in self._handlers):
                return "absent"
            self._consumed.add(handler)
        logger.debug(f"Consumed one-time handler {handler.display_name}")
        return "consumed"

    def mark_consumed(self, handler: Handler, *, declared_once: bool = False) -> bool:
        """
        Mark a handler as consumed.

        Only the call that performs the transition returns True. Returns False
        without raising for a permanent handler (unless its resolver declared
        the response one-time), for a handler that is already consumed, and
        for a handler that is no longer in the list.
        """
        return self._consume(handler, declared_once) == "consumed"

    def claim(
        self,
        handler: Handler,
        *,
        declared_once: bool = False,
        generation: int | None = None,
    ) -> bool:
        """
        Claim the right to answer with ``handler``.

        Consumes it when it is single-use. Returns False only when another
        resolution consumed it first, in which case the caller must discard
        its response.

        ``generation`` is the value returned with the snapshot the caller
        scanned. If a reset or restore happened since, the request is still
        served but nothing is consumed, so the re-armed handler stays armed.
        A handler removed by a reset meanwhile can likewise still answer the
        request that selected it.
        """
        return self._consume(handler, declared_once, generation) != "already_consumed"

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def active_handlers(self) -> tuple[Handler, ...]:
        """Snapshot of handlers eligible for selection, in scan order."""
        return self.snapshot()[1]

    def snapshot(self) -> tuple[int, tuple[Handler, ...]]:
        """Active handlers together with the reset generation they belong to."""
        with self._lock:
            return self._generation, tuple(h for h in self._handlers if h not in self._consumed)

    def list_handlers(self) -> tuple[Handler, ...]:
        """Snapshot of all handlers in scan order, consumed ones included."""
        with self._lock:
            return tuple(self._handlers)

    def is_consumed(self, handler: Handler) -> bool:
        with self._lock:
            return handler in self._consumed

    @property
    def initial_handlers(self) -> tuple[Handler, ...]:
        return self._initial

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __repr__(self) -> str:
        return f"HandlerList(handlers={len(self)}, consumed={len(self._consumed)})"


__all__ = ["HandlerList"]
