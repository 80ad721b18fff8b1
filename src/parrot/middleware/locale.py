"""Scope resolution middleware.

Runs before handler code on every request. For routes produced by a
localized block it seeds ``request.assigns[assign_key]`` with the
scope's assigns; other routes pass through untouched::

    routes = LocalizedRoutes(scopes=...)
    app.add_middleware(routes.middleware())

A route tagged with a scope the configuration does not know is a
deployment error: the resolution failure is raised and the request ends
with a 500.
"""

from parrot.context import current_scope
from parrot.http.request import Request
from parrot.middleware.protocol import AnyResponse, Next
from parrot.scopes.config import ScopeConfig
from parrot.scopes.resolve import apply_resolution, resolve_request


class LocaleMiddleware:
    """Resolve the request's scope and attach its assigns.

    Template globals registered by this middleware:

    - ``current_scope``: the resolved ``FlatScope`` (or ``None``)
    """

    __slots__ = ("config", "template_globals")

    def __init__(self, config: ScopeConfig) -> None:
        self.config = config
        self.template_globals = {"current_scope": current_scope}

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        resolution = resolve_request(request, self.config)
        apply_resolution(request, resolution, self.config)
        return await next(request)
