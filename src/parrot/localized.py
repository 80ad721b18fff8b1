"""LocalizedRoutes — the caller-facing entry point.

Builds a ``ScopeConfig`` once and hands out the pieces an app wires in::

    routes = LocalizedRoutes(
        scopes={
            "/": {
                "assigns": {"locale": "en", "name": "English"},
                "scopes": {"/gb": {"assigns": {"locale": "en", "name": "British"}}},
            },
            "/nl": {"assigns": {"locale": "nl", "name": "Nederlands"}},
        },
    )

    block = routes.block()

    @block.route("/products/{id:int}", name="product")
    def product(id: int):
        return Template("product.html", id=id)

    app = App()
    app.localize(block, routes)
    app.add_middleware(routes.middleware())
    app.on_mount(routes.on_mount())

Handlers and templates then read the scope back with ``get_scope()``,
``assigned_values()``, or ``path_for()`` for cross-scope links.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from parrot.errors import MissingLocaleAssignError
from parrot.middleware.locale import LocaleMiddleware
from parrot.realtime.mount import ScopeMount
from parrot.routing.localize import RouteBlock
from parrot.routing.router import Router
from parrot.scopes.config import ScopeConfig, build_config
from parrot.scopes.model import FlatScope, Nested
from parrot.scopes.resolve import RESOLVED_SCOPE_KEY, resolve_request

if TYPE_CHECKING:
    from parrot.app import App
    from parrot.http.request import Request


class LocalizedRoutes:
    """Scope configuration plus the helpers built on it.

    Accepts the same options as ``build_config()``: ``scopes``
    (required), ``assign_key``, ``default_locale``, ``gettext_backend``,
    ``locale_field``. Configuration errors raise here.
    """

    __slots__ = ("config",)

    def __init__(self, **options: Any) -> None:
        self.config: ScopeConfig = build_config(**options)

    @classmethod
    def from_config(cls, config: ScopeConfig) -> LocalizedRoutes:
        routes = cls.__new__(cls)
        routes.config = config
        return routes

    def __repr__(self) -> str:
        return f"LocalizedRoutes({[s.path for s in self.config.flat]!r})"

    # -- Scope queries --

    def scopes(self) -> tuple[FlatScope, ...]:
        """All scopes in declaration order."""
        return self.config.flat

    def scopes_nested(self) -> Nested | None:
        """The declared scope tree, or ``None`` when declared flat."""
        return self.config.nested

    def get_scope(self, request: Request) -> FlatScope | None:
        """The scope *request* resolved to, or ``None`` if unscoped."""
        resolved = request._cache.get(RESOLVED_SCOPE_KEY)
        if resolved is None:
            resolved = resolve_request(request, self.config).unwrap()
        return resolved.flat_entry if resolved is not None else None

    def assigned_values(self, request: Request) -> dict[str, Any]:
        """The scope assigns attached to *request*.

        Returns ``{}`` for an unscoped request. Raises
        ``MissingLocaleAssignError`` when the request hit a localized
        route but nothing attached its assigns (middleware not installed).
        """
        key = self.config.assign_key
        value = request.assigns.get(key)
        if value is not None:
            return dict(value)
        if request.route is not None and request.route.is_scoped:
            raise MissingLocaleAssignError(
                key,
                f"{request.path!r} is localized; add routes.middleware() to the app",
            )
        return {}

    # -- Wiring --

    def block(self) -> RouteBlock:
        """A new, empty route block for ``App.localize()``."""
        return RouteBlock()

    def middleware(self) -> LocaleMiddleware:
        return LocaleMiddleware(self.config)

    def on_mount(self) -> ScopeMount:
        return ScopeMount(self.config)

    # -- Cross-scope links --

    def path_for(
        self,
        target: App | Router,
        name: str,
        *,
        scope: FlatScope | str,
        **params: object,
    ) -> str:
        """Path of route *name* in *scope*.

        *scope* is a ``FlatScope``, a key (``"en/us"``) or a path
        (``"/en/us"``). Raises ``LookupError`` for an unknown scope or a
        route the scope does not define.
        """
        entry = self._scope(scope)
        return _router_of(target).url_for(name, scope_key=entry.key, **params)

    def url_for(
        self,
        target: App | Router,
        name: str,
        *,
        scope: FlatScope | str,
        base_url: str = "",
        **params: object,
    ) -> str:
        """Like ``path_for()``, prefixed with *base_url* (``"https://example.com"``)."""
        return base_url.rstrip("/") + self.path_for(target, name, scope=scope, **params)

    def alternates(
        self,
        target: App | Router,
        name: str,
        **params: object,
    ) -> Iterator[tuple[FlatScope, str]]:
        """Yield ``(scope, path)`` for every scope that defines route *name*.

        Feeds language switchers and ``hreflang`` links.
        """
        router = _router_of(target)
        for entry in self.config.flat:
            if router.find(name, scope_key=entry.key) is not None:
                yield entry, router.url_for(name, scope_key=entry.key, **params)

    def _scope(self, scope: FlatScope | str) -> FlatScope:
        entry = scope if isinstance(scope, FlatScope) else self.config.lookup(scope)
        if entry is None or self.config.index.get(entry.key) is None:
            msg = f"Unknown scope {scope!r}"
            raise LookupError(msg)
        return entry


def _router_of(target: App | Router) -> Router:
    return target if isinstance(target, Router) else target.router
