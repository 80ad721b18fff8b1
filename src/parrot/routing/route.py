"""Route, RouteSpec, and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``  (is_param=False)
    Param:   ``/{id}``   (is_param=True, param_name="id")
    Typed:   ``/{id:int}`` (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class RouteSpec:
    """A route declaration before scope expansion.

    Produced by ``RouteBlock.route()`` or returned from a per-scope
    route factory. Paths are relative to the scope prefix.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str] = frozenset({"GET"})
    name: str | None = None
    live: bool = False


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created during app setup, compiled into the router at freeze time.
    ``scope_key`` tags routes produced by scope expansion; the resolver
    recovers the scope from it. ``source_path`` keeps the unprefixed
    declaration for tooling.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    name: str | None = None
    scope_key: str | None = None
    source_path: str | None = None
    live: bool = False

    @property
    def is_scoped(self) -> bool:
        return self.scope_key is not None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
