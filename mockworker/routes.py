"""
Route builders for mockworker.

Convenience constructors for HTTP handlers matched on method and path.
The engine treats the resulting predicates as opaque boolean tests; any
other callable works just as well.

Path templates:
- ``/book/:id`` captures one segment as ``id``
- ``/static/*`` matches anything below ``/static/``
- ``https://api.example.com/book/:id`` also requires scheme and host
- trailing slashes are ignored

Example:
    get_book = get("/book/:id", lambda request: httpx.Response(200, json={"id": 1}))
    fail_once = get("/book/:id", lambda request: httpx.Response(500), once=True)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote, urlsplit

from .handler import Handler, Lifecycle, Resolver

ANY_METHOD = "*"


@dataclass(frozen=True)
class PathMatch:
    """Result of a successful path match."""

    params: dict[str, str] = field(default_factory=dict)


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def match_path(template: str, path: str) -> PathMatch | None:
    """
    Match a concrete path against a template.

    Returns a PathMatch with captured ``:name`` segments, or None.
    """
    expected = _segments(template)
    actual = _segments(path)
    params: dict[str, str] = {}

    for index, segment in enumerate(expected):
        if segment == "*":
            return PathMatch(params)
        if index >= len(actual):
            return None
        if segment.startswith(":"):
            params[segment[1:]] = unquote(actual[index])
        elif segment != actual[index]:
            return None

    if len(actual) != len(expected):
        return None
    return PathMatch(params)


def _request_method(request: Any) -> str:
    return str(getattr(request, "method", "")).upper()


def _request_url_parts(request: Any) -> tuple[str, str, str]:
    """(scheme, host, path) of a request, tolerating httpx and plain objects."""
    url = getattr(request, "url", None)
    if url is None:
        return "", "", str(getattr(request, "path", ""))
    if isinstance(url, str):
        parts = urlsplit(url)
        return parts.scheme, parts.hostname or "", parts.path
    return (
        str(getattr(url, "scheme", "")),
        str(getattr(url, "host", "")),
        str(getattr(url, "path", "")),
    )


@dataclass(frozen=True)
class RoutePredicate:
    """Predicate matching on HTTP method and path template."""

    method: str
    path: str

    def _origin_and_template(self) -> tuple[str, str, str]:
        if "://" not in self.path:
            return "", "", self.path
        parts = urlsplit(self.path)
        return parts.scheme, parts.hostname or "", parts.path or "/"

    def __call__(self, request: Any) -> bool:
        if self.method != ANY_METHOD and _request_method(request) != self.method:
            return False
        scheme, host, template = self._origin_and_template()
        request_scheme, request_host, request_path = _request_url_parts(request)
        if scheme and (scheme != request_scheme or host != request_host):
            return False
        return match_path(template, request_path) is not None

    def params(self, request: Any) -> dict[str, str]:
        """Path parameters captured from ``request``, empty when it does not match."""
        _, _, template = self._origin_and_template()
        _, _, request_path = _request_url_parts(request)
        match = match_path(template, request_path)
        return match.params if match else {}

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


def route(
    method: str,
    path: str,
    resolver: Resolver,
    *,
    once: bool = False,
    name: str | None = None,
) -> Handler:
    """Build a handler for ``method`` requests to ``path``."""
    predicate = RoutePredicate(method.upper(), path)
    return Handler(
        predicate,
        resolver,
        lifecycle=Lifecycle.ONE_TIME if once else Lifecycle.PERMANENT,
        name=name or str(predicate),
        metadata={"method": predicate.method, "path": path},
    )


def get(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route("GET", path, resolver, **kwargs)


def post(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route("POST", path, resolver, **kwargs)


def put(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route("PUT", path, resolver, **kwargs)


def patch(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route("PATCH", path, resolver, **kwargs)


def delete(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route("DELETE", path, resolver, **kwargs)


def head(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route("HEAD", path, resolver, **kwargs)


def options(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route("OPTIONS", path, resolver, **kwargs)


def any_method(path: str, resolver: Resolver, **kwargs: Any) -> Handler:
    return route(ANY_METHOD, path, resolver, **kwargs)


__all__ = [
    "ANY_METHOD",
    "PathMatch",
    "RoutePredicate",
    "match_path",
    "route",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "head",
    "options",
    "any_method",
]
