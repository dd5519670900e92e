"""
Exceptions for mockworker.

Predicate and resolver failures are never raised to the caller of a
resolution. They are logged, emitted as lifecycle events and carried on the
returned Resolution so a single bad handler cannot break request traffic.
"""
from __future__ import annotations


class MockWorkerError(Exception):
    """Base class for mockworker errors."""

    pass


class HandlerExecutionError(MockWorkerError):
    """A handler callable raised while a request was being resolved."""

    stage = "handler"

    def __init__(self, handler_name: str, request_id: str, cause: BaseException):
        self.handler_name = handler_name
        self.request_id = request_id
        self.cause = cause
        super().__init__(
            f"[{handler_name}] {self.stage} failed for request {request_id}: "
            f"{type(cause).__name__}: {cause}"
        )


class PredicateError(HandlerExecutionError):
    """Raised inside resolution when a predicate fails. Treated as no match."""

    stage = "predicate"


class ResolverError(HandlerExecutionError):
    """Raised inside resolution when a resolver fails. Treated as unhandled."""

    stage = "resolver"


class UnhandledRequestError(MockWorkerError):
    """
    Raised by MockTransport when no handler claimed a request and the
    unhandled-request strategy is "error".
    """

    def __init__(self, method: str, url: str):
        self.method = method
        self.url = url
        super().__init__(
            f"No mock handler matched {method} {url}. "
            "Add a handler for it or change on_unhandled_request."
        )


__all__ = [
    "MockWorkerError",
    "HandlerExecutionError",
    "PredicateError",
    "ResolverError",
    "UnhandledRequestError",
]
