"""Request scope resolution.

Pure functions that map a matched route to its scope and return a
``Resolution`` value. They never raise and never touch shared state;
the integration shims (``LocaleMiddleware``, ``ScopeMount``) decide
whether an error escalates into a failed request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parrot.errors import MethodNotAllowed, MissingRootSlugError, NotFound, ParrotError
from parrot.scopes.model import ResolvedScope, thaw

if TYPE_CHECKING:
    from parrot.http.request import Request
    from parrot.routing.route import Route
    from parrot.routing.router import Router
    from parrot.scopes.config import ScopeConfig

logger = logging.getLogger("parrot.scopes")

# Request cache slot holding the ResolvedScope
RESOLVED_SCOPE_KEY = "parrot.resolved_scope"


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving a route to a scope.

    Exactly one of three shapes:

    - pass-through: ``scope is None and error is None`` (unscoped route)
    - resolved: ``scope`` is set
    - failed: ``error`` is set
    """

    scope: ResolvedScope | None = None
    error: ParrotError | None = None

    @property
    def passthrough(self) -> bool:
        return self.scope is None and self.error is None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        """Truthy only when a scope was resolved."""
        return self.scope is not None

    def unwrap(self) -> ResolvedScope | None:
        """Return the scope (or ``None`` for pass-through); raise a failure."""
        if self.error is not None:
            raise self.error
        return self.scope


def resolve_route(route: Route | None, path: str, config: ScopeConfig) -> Resolution:
    """Resolve the scope owning *route* for a request to *path*."""
    if route is None or route.scope_key is None:
        return Resolution()

    entry = config.index.get(route.scope_key)
    if entry is None:
        msg = (
            f"Route {route.path!r} is tagged with scope {route.scope_key!r}, "
            "which is not in the active scope configuration."
        )
        return Resolution(error=MissingRootSlugError(msg))

    logger.debug("Resolved %s to scope %s", path, entry.path)
    return Resolution(scope=ResolvedScope(flat_entry=entry, raw_path=path))


def resolve_request(request: Request, config: ScopeConfig) -> Resolution:
    """Resolve *request* from the route the router matched for it.

    A request that was already resolved returns its cached scope.
    """
    cached = request._cache.get(RESOLVED_SCOPE_KEY)
    if cached is not None:
        return Resolution(scope=cached)
    return resolve_route(request.route, request.path, config)


def resolve_path(path: str, router: Router, config: ScopeConfig) -> Resolution:
    """Match *path* as a ``GET`` and resolve its scope.

    A path with no ``GET`` route passes through like an unknown path.

    Used for persistent connections, whose initial page path is not the
    path of the request that opened them.
    """
    try:
        match = router.match("GET", path)
    except (NotFound, MethodNotAllowed):
        return Resolution()
    except ParrotError as exc:
        return Resolution(error=exc)
    return resolve_route(match.route, path, config)


def apply_resolution(request: Request, resolution: Resolution, config: ScopeConfig) -> None:
    """Seed request-scoped storage from a successful resolution.

    Stores a copy of the scope's assigns under ``config.assign_key`` and
    the ``ResolvedScope`` in the request cache. No-op for pass-through.
    """
    scope = resolution.unwrap()
    if scope is None or RESOLVED_SCOPE_KEY in request._cache:
        return
    request._cache[RESOLVED_SCOPE_KEY] = scope
    request.assigns[config.assign_key] = thaw(scope.assigns)
