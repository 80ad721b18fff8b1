"""Route localization — one declared block, one route copy per scope.

A block is either a ``RouteBlock`` (routes declared once, re-emitted
verbatim for every scope) or a factory called with each ``FlatScope``
that returns the ``RouteSpec`` list for that scope::

    block = RouteBlock()

    @block.route("/products/{id:int}", name="product")
    def product(id: int): ...

    routes = expand(config.flat, block)
    # "/products/{id:int}", "/gb/products/{id:int}", "/nl/products/{id:int}", ...

Expansion runs once at app freeze. Each produced ``Route`` is tagged with
its scope key so request-time resolution is a dictionary lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeAlias

from parrot.routing.route import Route, RouteSpec
from parrot.routing.router import join_paths
from parrot.scopes.gettext import translate_path

if TYPE_CHECKING:
    from parrot.scopes.config import ScopeConfig
    from parrot.scopes.model import FlatScope

logger = logging.getLogger("parrot.routing")

RouteFactory: TypeAlias = "Callable[[FlatScope], Iterable[RouteSpec]]"


class RouteBlock:
    """A set of routes to be repeated under every scope prefix.

    Mirrors ``App.route()``: decorate handlers to add them to the block.
    """

    __slots__ = ("_specs",)

    def __init__(self) -> None:
        self._specs: list[RouteSpec] = []

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        live: bool = False,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a handler in the block via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.add(path, func, methods=methods, name=name, live=live)
            return func

        return decorator

    def add(
        self,
        path: str,
        handler: Callable[..., Any],
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        live: bool = False,
    ) -> None:
        self._specs.append(
            RouteSpec(
                path=path,
                handler=handler,
                methods=frozenset(m.upper() for m in (methods or ["GET"])),
                name=name,
                live=live,
            )
        )

    @property
    def specs(self) -> tuple[RouteSpec, ...]:
        return tuple(self._specs)

    def __call__(self, scope: FlatScope) -> Iterable[RouteSpec]:  # noqa: ARG002
        return self._specs

    def __len__(self) -> int:
        return len(self._specs)


def expand(
    flat: Iterable[FlatScope],
    block: RouteBlock | RouteFactory,
    *,
    config: ScopeConfig | None = None,
) -> list[Route]:
    """Produce one scoped copy of *block* per Flat entry, in Flat order.

    When *config* has a gettext backend, static path segments are
    translated with each scope's locale before prefixing.
    """
    backend = config.gettext_backend if config is not None else None
    routes: list[Route] = []
    for scope in flat:
        locale = config.locale_for(scope) if config is not None else None
        for spec in block(scope):
            path = spec.path
            if backend is not None and locale is not None:
                path = translate_path(path, locale, backend)
            routes.append(
                Route(
                    path=join_paths(scope.path, path),
                    handler=spec.handler,
                    methods=spec.methods,
                    name=spec.name,
                    scope_key=scope.key,
                    source_path=spec.path,
                    live=spec.live,
                )
            )
        logger.debug("Expanded scope %s", scope.path)
    return routes
