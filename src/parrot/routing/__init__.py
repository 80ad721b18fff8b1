"""Routing — compiled route table with O(path-depth) matching.

Routes are registered during setup, expanded per scope for localized
blocks, and compiled into an immutable lookup structure when the app
freezes.
"""

from parrot.routing.route import Route, RouteMatch, RouteSpec
from parrot.routing.router import Router, parse_path

__all__ = ["Route", "RouteMatch", "RouteSpec", "Router", "parse_path"]
