"""Immutable HTTP request.

Frozen metadata; the body is never read. Two dicts hang off the frozen
instance and stay mutable for the request's lifetime:

- ``assigns``: render-visible per-request values (the scope assigns live
  here under the configured assign key);
- ``_cache``: framework-private slots (the resolved scope).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from parrot.http.headers import Headers

if TYPE_CHECKING:
    from parrot.routing.route import Route, RouteMatch


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``route`` is the route the router matched, set once before the
    middleware chain runs (``None`` when nothing matched).
    """

    method: str
    path: str
    headers: Headers
    query_string: bytes
    path_params: dict[str, str]
    http_version: str
    client: tuple[str, int] | None

    route: Route | None = None
    assigns: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def is_fragment(self) -> bool:
        """True if this is an htmx fragment request (HX-Request header)."""
        return self.headers.get("hx-request") == "true"

    @property
    def current_path(self) -> str | None:
        """Path of the page the browser shows (``HX-Current-URL`` header)."""
        value = self.headers.get("hx-current-url")
        if not value:
            return None
        return urlsplit(value).path or "/"

    def with_match(self, match: RouteMatch) -> Request:
        """Return a copy bound to *match*, sharing assigns and cache."""
        return replace(self, route=match.route, path_params=match.path_params)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any]) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query_string=scope.get("query_string", b""),
            path_params={},
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
        )
