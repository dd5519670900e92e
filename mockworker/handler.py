"""
Handler definitions for mockworker.

A Handler pairs a predicate (does this request concern me?) with a
resolver (what should the mocked answer be?) and a lifecycle flag that
decides whether it may answer more than once.

Resolvers answer with one of:
- respond(response) / a bare response value: the request is handled
- respond_once(response): handled, and the handler is spent afterwards
- passthrough() or None: decline, the next matching handler is tried

Example:
    handler = Handler(
        predicate=lambda request: request.url.path == "/health",
        resolver=lambda request: httpx.Response(200, json={"ok": True}),
    )
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Final
from uuid import UUID, uuid4

# Predicate: request -> bool (or awaitable bool)
Predicate = Callable[[Any], "bool | Awaitable[bool]"]

# Resolver: request -> outcome (or awaitable outcome)
Resolver = Callable[[Any], Any]


class Lifecycle(Enum):
    """How many times a handler may produce a response."""

    PERMANENT = "permanent"
    """Answers every matching request."""

    ONE_TIME = "one_time"
    """Answers the first matching request, then is skipped."""


# =============================================================================
# Resolver Outcomes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Respond:
    """A concrete answer from a resolver."""

    response: Any
    once: bool = False


class _Pass:
    """Sentinel type for a resolver declining a request it matched."""

    _instance: _Pass | None = None

    def __new__(cls) -> _Pass:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PASS"

    def __bool__(self) -> bool:
        return False


PASS: Final = _Pass()


def respond(response: Any) -> Respond:
    """Answer the request with ``response``."""
    return Respond(response)


def respond_once(response: Any) -> Respond:
    """
    Answer the request with ``response`` and retire the handler.

    The serving handler is marked consumed after this response even if it
    was declared permanent, so later matching requests fall through.
    """
    return Respond(response, once=True)


def passthrough() -> _Pass:
    """Decline the request so the next matching handler gets a chance."""
    return PASS


def to_respond(outcome: Any) -> Respond | None:
    """
    Normalize a resolver's return value.

    Returns None for a pass (PASS or None), otherwise a Respond.
    """
    if outcome is None or outcome is PASS:
        return None
    if isinstance(outcome, Respond):
        return outcome
    return Respond(outcome)


# =============================================================================
# Handler
# =============================================================================


def _callable_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


@dataclass(frozen=True, eq=False, slots=True)
class Handler:
    """
    An immutable predicate/resolver pair.

    Handlers compare and hash by identity: two handlers built from the same
    callables are still distinct entries in a HandlerList. Consumption state
    of ONE_TIME handlers is tracked by the owning HandlerList, not here.
    """

    predicate: Predicate
    resolver: Resolver
    lifecycle: Lifecycle = Lifecycle.PERMANENT
    name: str = ""
    id: UUID = field(default_factory=uuid4)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Name for logs and events."""
        if self.name:
            return self.name
        return f"{_callable_name(self.predicate)} -> {_callable_name(self.resolver)}"

    @property
    def is_one_time(self) -> bool:
        return self.lifecycle is Lifecycle.ONE_TIME

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.display_name,
            "lifecycle": self.lifecycle.value,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return f"Handler({self.display_name!r}, {self.lifecycle.value}, id={str(self.id)[:8]}...)"


def one_time(predicate: Predicate, resolver: Resolver, *, name: str = "") -> Handler:
    """Build a ONE_TIME handler."""
    return Handler(predicate, resolver, lifecycle=Lifecycle.ONE_TIME, name=name)


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = [
    "Predicate",
    "Resolver",
    "Lifecycle",
    "Respond",
    "PASS",
    "respond",
    "respond_once",
    "passthrough",
    "to_respond",
    "Handler",
    "one_time",
    "maybe_await",
]
