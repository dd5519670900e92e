"""
MockWorker: the public surface of mockworker.

A worker owns one HandlerList and one ResolutionEngine. Test code holds a
reference to the worker and changes its handlers at runtime:

    worker = setup_worker(get("/book/:id", book_resolver))

    def test_review_submission():
        worker.use(post("/book/:id/reviews", review_resolver))
        ...

    def teardown_function():
        worker.reset_handlers()
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import MockSettings, UnhandledRequestStrategy, get_settings
from .engine import Resolution, ResolutionEngine
from .events import LifecycleEvents
from .handler import Handler
from .handler_list import HandlerList
from .observability import JSONLogger, ResolutionLogger
from .transports import MockTransport

logger = logging.getLogger(__name__)


class MockWorker:
    """
    Owner of a handler list and the engine resolving requests against it.

    Args:
        *handlers: Initial handlers, scanned in the given order
        settings: Worker settings (defaults to get_settings())
    """

    def __init__(self, *handlers: Handler, settings: MockSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self.events = LifecycleEvents()
        self._log = ResolutionLogger(
            inner=JSONLogger(name=self.settings.log_name),
            quiet=self.settings.quiet,
        )
        self._handlers = HandlerList(handlers)
        self._engine = ResolutionEngine(
            self._handlers,
            resolution_logger=self._log,
            events=self.events,
        )

    @property
    def engine(self) -> ResolutionEngine:
        return self._engine

    # -------------------------------------------------------------------------
    # Runtime handlers
    # -------------------------------------------------------------------------

    def use(self, *handlers: Handler) -> None:
        """
        Prepend runtime handlers.

        They take priority over every handler already present; within one
        call they keep the order given.
        """
        self._handlers.prepend(handlers)
        self._log.handlers_changed("use", len(handlers))

    def reset_handlers(self, *next_handlers: Handler) -> None:
        """
        Drop runtime handlers and re-arm one-time handlers.

        With arguments, the given handlers replace the initial handlers as
        the new baseline.
        """
        self._handlers.reset(next_handlers if next_handlers else None)
        self._log.handlers_changed("reset", len(self._handlers))

    def restore_handlers(self) -> None:
        """Re-arm consumed one-time handlers without removing runtime handlers."""
        self._handlers.restore()
        self._log.handlers_changed("restore", len(self._handlers))

    def list_handlers(self) -> tuple[Handler, ...]:
        """All handlers in scan order, consumed one-time handlers included."""
        return self._handlers.list_handlers()

    def active_handlers(self) -> tuple[Handler, ...]:
        return self._handlers.active_handlers()

    def is_consumed(self, handler: Handler) -> bool:
        return self._handlers.is_consumed(handler)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    async def resolve(self, request: Any) -> Resolution:
        return await self._engine.resolve(request)

    def resolve_sync(self, request: Any) -> Resolution:
        return self._engine.resolve_sync(request)

    # -------------------------------------------------------------------------
    # httpx integration
    # -------------------------------------------------------------------------

    def transport(
        self,
        *,
        real_transport: httpx.BaseTransport | None = None,
        async_real_transport: httpx.AsyncBaseTransport | None = None,
        on_unhandled_request: UnhandledRequestStrategy | str | None = None,
    ) -> MockTransport:
        """Build an httpx transport resolving requests with this worker."""
        return MockTransport(
            self,
            real_transport=real_transport,
            async_real_transport=async_real_transport,
            on_unhandled_request=on_unhandled_request,
        )

    def client(self, **kwargs: Any) -> httpx.Client:
        """httpx.Client using this worker's transport. Extra kwargs go to the client."""
        transport_kwargs = {
            key: kwargs.pop(key)
            for key in ("real_transport", "on_unhandled_request")
            if key in kwargs
        }
        return httpx.Client(transport=self.transport(**transport_kwargs), **kwargs)

    def async_client(self, **kwargs: Any) -> httpx.AsyncClient:
        """httpx.AsyncClient using this worker's transport."""
        transport_kwargs = {
            key: kwargs.pop(key)
            for key in ("async_real_transport", "on_unhandled_request")
            if key in kwargs
        }
        return httpx.AsyncClient(transport=self.transport(**transport_kwargs), **kwargs)

    def __repr__(self) -> str:
        return f"MockWorker(handlers={len(self._handlers)})"


def setup_worker(*handlers: Handler, settings: MockSettings | None = None) -> MockWorker:
    """Create a worker with the given initial handlers."""
    worker = MockWorker(*handlers, settings=settings)
    logger.debug(f"Worker set up with {len(handlers)} initial handler(s)")
    return worker


__all__ = ["MockWorker", "setup_worker"]
