"""Scope data types: Nested tree nodes, Flat entries, and the per-request ResolvedScope."""

from __future__ import annotations

from collections.abc import Mapping, Set
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


def freeze(value: Any) -> Any:
    """Read-only deep copy of *value*.

    Mappings become ``MappingProxyType``, lists and tuples become tuples,
    sets become frozensets.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, Set):
        return frozenset(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Mutable deep copy of frozen mappings, for per-request storage."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    return value


@dataclass(frozen=True, slots=True)
class Nested:
    """One node of a declared scope tree.

    The root node has an empty slug and addresses ``/``. Every other node
    contributes exactly one path segment.

    Usage::

        Nested(
            assigns={"locale": "en", "name": "English"},
            children=(
                Nested("gb", {"locale": "en", "name": "British"}),
                Nested("nl", {"locale": "nl", "name": "Nederlands"}),
            ),
        )
    """

    slug: str = ""
    assigns: Mapping[str, Any] = field(default_factory=dict)
    children: tuple[Nested, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "assigns", freeze(self.assigns))
        object.__setattr__(self, "children", tuple(self.children))

    def count(self) -> int:
        """Number of nodes in this subtree, including itself."""
        return 1 + sum(child.count() for child in self.children)


@dataclass(frozen=True, slots=True)
class FlatScope:
    """A linearized scope: the full slug chain plus its merged assigns.

    ``assigns`` is read-only all the way down; scopes are shared by every
    request that resolves to them.
    """

    path_segments: tuple[str, ...]
    assigns: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path_segments", tuple(self.path_segments))
        object.__setattr__(self, "assigns", freeze(self.assigns))

    @property
    def key(self) -> str:
        """Lookup identifier: segments joined with ``/``; ``""`` for the root."""
        return "/".join(self.path_segments)

    @property
    def path(self) -> str:
        """URL prefix of this scope (``/`` for the root)."""
        return "/" + self.key

    @property
    def prefix(self) -> str:
        """The scope's own slug (last segment)."""
        return self.path_segments[-1] if self.path_segments else ""

    @property
    def depth(self) -> int:
        return len(self.path_segments)

    @property
    def schema(self) -> frozenset[str]:
        """The set of assign keys this scope declares."""
        return frozenset(self.assigns)


@dataclass(frozen=True, slots=True)
class ResolvedScope:
    """The scope a request resolved to. Owned by a single request."""

    flat_entry: FlatScope
    raw_path: str

    @property
    def assigns(self) -> Mapping[str, Any]:
        return self.flat_entry.assigns
