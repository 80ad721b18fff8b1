"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes. Scope-expanded routes carry their
scope tag on the ``Route`` itself, so a match tells the resolver which
scope owns the request without re-parsing the path.
"""

import logging
import re
from dataclasses import dataclass

from parrot.errors import ConfigurationError, MethodNotAllowed, NotFound
from parrot.routing.params import CONVERTERS, format_param
from parrot.routing.route import PathSegment, Route, RouteMatch

logger = logging.getLogger("parrot.routing")

_FLASK_PARAM = re.compile(r"<[^>]*>")


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id}"     -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}" -> [PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{path:path}" -> [PathSegment("{path:path}", is_param=True, param_type="path")]

    Raises ``ConfigurationError`` for ``<param>`` syntax and unknown converters.
    """
    if _FLASK_PARAM.search(path):
        msg = f"Route {path!r} uses <param> syntax; parrot expects {{param}}."
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown path converter {param_type!r} in route {path!r}."
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


def join_paths(prefix: str, path: str) -> str:
    """Join a scope prefix and a route path with exactly one separator."""
    joined = "/".join(part for part in (prefix.strip("/"), path.strip("/")) if part)
    return "/" + joined


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all_route", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Catch-all route (path converter)
        self.catch_all_route: _CatchAllEdge | None = None
        # Routes at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge — consumes remaining path."""

    param_name: str
    route_by_method: dict[str, Route]


class Router:
    """Compiled router with trie-based path matching.

    Registration order matters: when two routes claim the same path and
    method, the first one registered wins and the later one is shadowed.
    Localized blocks are expanded in scope order, so earlier scopes take
    priority on overlapping prefixes.

    Usage::

        router = Router()
        router.add(Route("/users", handler, frozenset({"GET"})))
        router.add(Route("/users/{id:int}", handler, frozenset({"GET"})))
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_named", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False
        self._routes: list[Route] = []
        # (name, scope_key) -> route; first registration wins
        self._named: dict[tuple[str, str | None], Route] = {}

    def add(self, route: Route) -> None:
        """Add a route to the router. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        segments = parse_path(route.path)
        self._routes.append(route)
        if route.name is not None:
            self._named.setdefault((route.name, route.scope_key), route)

        node = self._root
        for seg in segments:
            if seg.is_param and seg.param_type == "path":
                # Catch-all: consumes rest of path, must be last segment
                if node.catch_all_route is None:
                    node.catch_all_route = _CatchAllEdge(
                        param_name=seg.param_name or "path",
                        route_by_method={},
                    )
                self._register(node.catch_all_route.route_by_method, route)
                return

            if seg.is_param:
                # Parameter segment
                if node.param_child is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    node.param_child = _ParamEdge(
                        param_name=seg.param_name or "",
                        param_type=seg.param_type,
                        regex=re.compile(f"^{pattern}$"),
                        node=_TrieNode(),
                    )
                node = node.param_child.node
            else:
                # Static segment
                if seg.value not in node.children:
                    node.children[seg.value] = _TrieNode()
                node = node.children[seg.value]

        self._register(node.routes_by_method, route)

    @staticmethod
    def _register(table: dict[str, Route], route: Route) -> None:
        for method in route.methods:
            existing = table.get(method)
            if existing is not None:
                logger.debug(
                    "%s %s is shadowed by an earlier route (%s)",
                    method,
                    route.path,
                    existing.path,
                )
                continue
            table[method] = route

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes in registration order."""
        return list(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against compiled routes.

        Returns a ``RouteMatch`` on success.
        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})

        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        node, params = result

        if method in node.routes_by_method:
            return RouteMatch(route=node.routes_by_method[method], path_params=params)

        # HEAD falls back to GET
        if method == "HEAD" and "GET" in node.routes_by_method:
            return RouteMatch(route=node.routes_by_method["GET"], path_params=params)

        if node.routes_by_method:
            raise MethodNotAllowed(frozenset(node.routes_by_method))

        raise NotFound(f"No route matches {method} {path!r}")

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[_TrieNode, dict[str, str]] | None:
        """Recursively match path parts against the trie."""
        # All parts consumed — return this node
        if index == len(parts):
            if node.routes_by_method:
                return node, params
            return None

        part = parts[index]

        # 1. Try static child first (exact match)
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        # 2. Try parameter child
        if node.param_child is not None:
            edge = node.param_child
            if edge.regex.match(part):
                new_params = {**params, edge.param_name: part}
                result = self._match_node(edge.node, parts, index + 1, new_params)
                if result is not None:
                    return result

        # 3. Try catch-all
        if node.catch_all_route is not None:
            remaining = "/".join(parts[index:])
            new_params = {**params, node.catch_all_route.param_name: remaining}
            synthetic = _TrieNode()
            synthetic.routes_by_method = node.catch_all_route.route_by_method
            return synthetic, new_params

        return None

    # -- URL building --

    def find(self, name: str, *, scope_key: str | None = None) -> Route | None:
        """Look up a named route, optionally within a scope."""
        return self._named.get((name, scope_key))

    def url_for(self, name: str, *, scope_key: str | None = None, **params: object) -> str:
        """Build the path of a named route.

        Raises ``LookupError`` if no route has that name in that scope,
        ``KeyError`` for a missing parameter, ``ValueError`` for a value
        the converter rejects.
        """
        route = self.find(name, scope_key=scope_key)
        if route is None:
            where = f" in scope {scope_key!r}" if scope_key is not None else ""
            msg = f"No route named {name!r}{where}"
            raise LookupError(msg)

        parts: list[str] = []
        for seg in parse_path(route.path):
            if not seg.is_param:
                parts.append(seg.value)
                continue
            name_ = seg.param_name or ""
            if name_ not in params:
                msg = f"Route {name!r} needs parameter {name_!r}"
                raise KeyError(msg)
            parts.append(format_param(params[name_], seg.param_type))
        return "/" + "/".join(parts)
