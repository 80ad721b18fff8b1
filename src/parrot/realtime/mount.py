"""Persistent connection mounting.

Live routes (``app.route(..., live=True)``) open long-lived connections,
usually Server-Sent Event streams driven by htmx. The connection's
scope comes from the page the browser shows (``HX-Current-URL``), not
from the stream endpoint, so it is resolved again at mount time::

    routes = LocalizedRoutes(scopes=...)
    app.on_mount(routes.on_mount())

    @app.route("/live/cart", live=True)
    async def cart(connection: Connection):
        locale = connection.assigns["locale"]
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from parrot.errors import MissingLocaleAssignError
from parrot.http.headers import Headers
from parrot.scopes.model import thaw
from parrot.scopes.resolve import RESOLVED_SCOPE_KEY, Resolution, resolve_path

if TYPE_CHECKING:
    from parrot.http.request import Request
    from parrot.routing.router import Router
    from parrot.scopes.config import ScopeConfig

logger = logging.getLogger("parrot.scopes")


@dataclass(slots=True)
class Connection:
    """A persistent connection being mounted.

    ``assigns`` is the request's assigns mapping, so values set by mount
    hooks are visible to templates rendered for this connection.
    """

    path: str
    headers: Headers
    assigns: dict[str, Any] = field(default_factory=dict)
    request: Request | None = field(default=None, repr=False)

    @classmethod
    def from_request(cls, request: Request) -> Connection:
        """Build the connection for *request*.

        The initial path is the ``HX-Current-URL`` path when the client
        sent one, else the request path.
        """
        return cls(
            path=request.current_path or request.path,
            headers=request.headers,
            assigns=request.assigns,
            request=request,
        )


def mount_scope(path: str, router: Router, config: ScopeConfig) -> Resolution:
    """Resolve the scope of a connection whose page lives at *path*."""
    return resolve_path(path, router, config)


class ScopeMount:
    """Mount hook that attaches scope assigns to a connection.

    Raises ``MissingLocaleAssignError`` when the connection's page is not
    scoped and no earlier step supplied the assign key.
    """

    __slots__ = ("config",)

    def __init__(self, config: ScopeConfig) -> None:
        self.config = config

    def __call__(self, connection: Connection, router: Router) -> None:
        key = self.config.assign_key
        resolution = mount_scope(connection.path, router, self.config)
        scope = resolution.unwrap()

        if scope is None:
            if key not in connection.assigns:
                raise MissingLocaleAssignError(
                    key,
                    f"connection page {connection.path!r} is not under any scope",
                )
            return

        connection.assigns[key] = thaw(scope.assigns)
        if connection.request is not None:
            connection.request._cache[RESOLVED_SCOPE_KEY] = scope
        logger.debug("Mounted %s in scope %s", connection.path, scope.flat_entry.path)
