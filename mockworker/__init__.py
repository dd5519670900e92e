"""
mockworker - request handler resolution for API mocking.

mockworker decides, for every intercepted request, which mock handler
answers it:

- **Handlers**: a predicate plus a resolver, permanent or one-time
- **Runtime handlers**: ``worker.use(...)`` prepends handlers that win over
  everything already registered
- **Pass-through**: a resolver may decline a request it matched and let the
  next handler answer
- **Unhandled requests**: fall through to the real network (or raise,
  depending on configuration)
- **httpx integration**: ``worker.client()`` / ``worker.async_client()``

Quick Start:
    >>> import httpx
    >>> from mockworker import setup_worker, get
    >>>
    >>> worker = setup_worker(
    ...     get("/book/:id", lambda request: httpx.Response(200, json={"title": "Dune"})),
    ... )
    >>> with worker.client(base_url="https://api.example.com") as client:
    ...     client.get("/book/42").json()
    {'title': 'Dune'}
"""

__version__ = "0.1.0"
__license__ = "MIT"

from mockworker.config import MockSettings, UnhandledRequestStrategy, get_settings
from mockworker.engine import Resolution, ResolutionEngine
from mockworker.errors import (
    HandlerExecutionError,
    MockWorkerError,
    PredicateError,
    ResolverError,
    UnhandledRequestError,
)
from mockworker.events import EventNames, LifecycleEvents
from mockworker.handler import (
    PASS,
    Handler,
    Lifecycle,
    Respond,
    one_time,
    passthrough,
    respond,
    respond_once,
)
from mockworker.handler_list import HandlerList
from mockworker.observability import JSONLogger, LogLevel, ResolutionLogger
from mockworker.routes import (
    PathMatch,
    RoutePredicate,
    any_method,
    delete,
    get,
    head,
    match_path,
    options,
    patch,
    post,
    put,
    route,
)
from mockworker.transports import MockTransport, to_httpx_response
from mockworker.worker import MockWorker, setup_worker

__all__ = [
    "__version__",
    "__license__",
    # Handlers
    "Handler",
    "Lifecycle",
    "Respond",
    "PASS",
    "respond",
    "respond_once",
    "passthrough",
    "one_time",
    "HandlerList",
    # Resolution
    "ResolutionEngine",
    "Resolution",
    "MockWorker",
    "setup_worker",
    # Routes
    "route",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "head",
    "options",
    "any_method",
    "match_path",
    "PathMatch",
    "RoutePredicate",
    # Transport
    "MockTransport",
    "to_httpx_response",
    # Configuration
    "MockSettings",
    "UnhandledRequestStrategy",
    "get_settings",
    # Errors
    "MockWorkerError",
    "HandlerExecutionError",
    "PredicateError",
    "ResolverError",
    "UnhandledRequestError",
    # Observability
    "EventNames",
    "LifecycleEvents",
    "JSONLogger",
    "LogLevel",
    "ResolutionLogger",
]
