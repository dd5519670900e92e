"""
httpx transport backed by a MockWorker.

MockTransport plugs into httpx.Client / httpx.AsyncClient. Each request is
resolved by the worker; handled requests get the mocked response, unhandled
ones follow the configured UnhandledRequestStrategy.

Example:
    worker = setup_worker(get("/book/:id", lambda r: httpx.Response(200)))
    async with httpx.AsyncClient(transport=worker.transport()) as client:
        response = await client.get("https://api.example.com/book/42")
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from .config import UnhandledRequestStrategy
from .errors import UnhandledRequestError

if TYPE_CHECKING:
    from .engine import Resolution
    from .worker import MockWorker

logger = logging.getLogger(__name__)


def to_httpx_response(outcome: Any) -> httpx.Response:
    """
    Convert a resolver's response value to an httpx.Response.

    Accepts an httpx.Response as is, dict/list as a JSON body, str as text
    and bytes as raw content, all with status 200.
    """
    if isinstance(outcome, httpx.Response):
        return outcome
    if isinstance(outcome, (dict, list)):
        return httpx.Response(200, json=outcome)
    if isinstance(outcome, str):
        return httpx.Response(200, text=outcome)
    if isinstance(outcome, bytes):
        return httpx.Response(200, content=outcome)
    raise TypeError(
        f"Cannot convert resolver outcome of type {type(outcome).__name__} "
        "to httpx.Response"
    )


class MockTransport(httpx.BaseTransport, httpx.AsyncBaseTransport):
    """
    Transport that answers from mock handlers and forwards everything else.

    Args:
        worker: Worker whose handlers resolve requests
        real_transport: Sync transport for unhandled requests
            (httpx.HTTPTransport by default)
        async_real_transport: Async transport for unhandled requests
            (httpx.AsyncHTTPTransport by default)
        on_unhandled_request: Overrides the worker's configured strategy
    """

    def __init__(
        self,
        worker: MockWorker,
        *,
        real_transport: httpx.BaseTransport | None = None,
        async_real_transport: httpx.AsyncBaseTransport | None = None,
        on_unhandled_request: UnhandledRequestStrategy | str | None = None,
    ) -> None:
        self._worker = worker
        self._real_transport = real_transport
        self._async_real_transport = async_real_transport
        self._owns_real = real_transport is None
        self._owns_async_real = async_real_transport is None
        self._strategy = UnhandledRequestStrategy(
            on_unhandled_request or worker.settings.on_unhandled_request
        )

    @property
    def strategy(self) -> UnhandledRequestStrategy:
        return self._strategy

    def _on_unhandled(self, request: httpx.Request, resolution: Resolution) -> None:
        if self._strategy is UnhandledRequestStrategy.ERROR:
            raise UnhandledRequestError(request.method, str(request.url))
        if self._strategy is UnhandledRequestStrategy.WARN:
            logger.warning(
                f"Captured a request without a matching handler: "
                f"{request.method} {request.url}, forwarding to the network"
                + (f" (resolver failed: {resolution.error})" if resolution.error else "")
            )

    # -------------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------------

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        request.read()
        resolution = self._worker.resolve_sync(request)
        if resolution.handled:
            return to_httpx_response(resolution.response)

        self._on_unhandled(request, resolution)
        if self._real_transport is None:
            self._real_transport = httpx.HTTPTransport()
        return self._real_transport.handle_request(request)

    def close(self) -> None:
        if self._real_transport is not None and self._owns_real:
            self._real_transport.close()
            self._real_transport = None

    # -------------------------------------------------------------------------
    # Async
    # -------------------------------------------------------------------------

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        resolution = await self._worker.resolve(request)
        if resolution.handled:
            return to_httpx_response(resolution.response)

        self._on_unhandled(request, resolution)
        if self._async_real_transport is None:
            self._async_real_transport = httpx.AsyncHTTPTransport()
        return await self._async_real_transport.handle_async_request(request)

    async def aclose(self) -> None:
        if self._async_real_transport is not None and self._owns_async_real:
            await self._async_real_transport.aclose()
            self._async_real_transport = None


__all__ = ["MockTransport", "to_httpx_response"]
