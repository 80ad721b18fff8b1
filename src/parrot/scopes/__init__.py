"""Scopes — declaration, normalization, configuration, and resolution.

A scope is one locale/region/brand routing dimension: a path slug plus a
bag of assigns. Scopes are declared as a tree (``Nested`` or the mapping
form) or as a flat list, and always normalized to the Flat list::

    from parrot.scopes import build_config

    config = build_config(
        scopes={
            "/": {
                "assigns": {"locale": "en", "name": "English"},
                "scopes": {"/gb": {"assigns": {"name": "British"}}},
            },
            "/nl": {"assigns": {"locale": "nl", "name": "Nederlands"}},
        },
    )
    [s.path for s in config.flat]  # ["/", "/gb", "/nl"]
"""

from parrot.scopes.config import ScopeConfig, build_config
from parrot.scopes.guard import AssignsCheck, check_assigns
from parrot.scopes.model import FlatScope, Nested, ResolvedScope
from parrot.scopes.normalize import flatten, nest, normalize
from parrot.scopes.resolve import Resolution, resolve_path, resolve_request, resolve_route

__all__ = [
    "AssignsCheck",
    "FlatScope",
    "Nested",
    "Resolution",
    "ResolvedScope",
    "ScopeConfig",
    "build_config",
    "check_assigns",
    "flatten",
    "nest",
    "normalize",
    "resolve_path",
    "resolve_request",
    "resolve_route",
]
