"""Scope normalization — the single source of truth for scope order and paths.

Turns every accepted declaration shape into the canonical Flat list:

- ``Nested`` trees are walked depth-first, pre-order. Every node emits an
  entry, the root and intermediate nodes included, so ``/en`` stays
  addressable next to ``/en/us``.
- Mapping declarations (``{"/": {"assigns": ..., "scopes": {...}}}``) are
  first parsed into a ``Nested`` tree.
- Flat sequences are validated and passed through unchanged.

Examples::

    normalize(Nested(children=(Nested("en"), Nested("fr"))))
    # -> (FlatScope(()), FlatScope(("en",)), FlatScope(("fr",)))
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeAlias

from parrot.errors import (
    AssignsSchemaError,
    ConfigurationError,
    DuplicateScopeError,
    MissingRootSlugError,
    ScopeSlugError,
)
from parrot.scopes.model import FlatScope, Nested

ScopeDeclaration: TypeAlias = Nested | Mapping[str, Any] | Sequence[FlatScope | Mapping[str, Any]]

ROOT_SLUG = "/"


def validate_slug(slug: str) -> str:
    """Return *slug* if it is a usable single path segment.

    Raises ``ScopeSlugError`` for empty slugs, slugs containing ``/``,
    and route-parameter syntax.
    """
    if not slug:
        msg = "Scope slugs must not be empty (only the root has no slug)."
        raise ScopeSlugError(msg)
    if "/" in slug:
        msg = f"Scope slug {slug!r} must be a single path segment."
        raise ScopeSlugError(msg)
    if "{" in slug or "}" in slug:
        msg = f"Scope slug {slug!r} must be static; route parameters are not allowed."
        raise ScopeSlugError(msg)
    return slug


def normalize(scopes: ScopeDeclaration) -> tuple[FlatScope, ...]:
    """Convert any scope declaration into the canonical Flat list.

    Raises:
        MissingRootSlugError: The tree root has neither a slug nor children,
            or a mapping declaration has no ``"/"`` key.
        DuplicateScopeError: Two entries share the same path segments.
        ScopeSlugError: A slug is not a single static segment.
        AssignsSchemaError: A Flat declaration has heterogeneous assign keys.
    """
    if isinstance(scopes, Nested):
        return flatten(scopes)
    if isinstance(scopes, Mapping):
        return flatten(from_mapping(scopes))
    if isinstance(scopes, Sequence) and not isinstance(scopes, (str, bytes)):
        flat = parse_flat(scopes)
        check_schema(flat)
        return flat
    msg = f"Scopes must be a Nested tree, a mapping, or a flat sequence, not {type(scopes).__name__}."
    raise ConfigurationError(msg)


def flatten(root: Nested) -> tuple[FlatScope, ...]:
    """Depth-first, pre-order walk of *root*, merging assigns parent-first."""
    if not root.slug and not root.children:
        msg = "The scope tree root has no slug and no children; nothing to route."
        raise MissingRootSlugError(msg)

    entries: list[FlatScope] = []
    # (node, parent segments, parent assigns); root slug contributes nothing
    stack: list[tuple[Nested, tuple[str, ...], Mapping[str, Any]]] = [(root, (), {})]
    while stack:
        node, parent_segments, parent_assigns = stack.pop()
        if node is root and not node.slug:
            segments = parent_segments
        else:
            segments = (*parent_segments, validate_slug(node.slug))
        assigns = {**parent_assigns, **node.assigns}
        entries.append(FlatScope(segments, assigns))
        # Reverse so the first child is popped first
        stack.extend((child, segments, assigns) for child in reversed(node.children))

    flat = tuple(entries)
    _check_unique(flat)
    return flat


def from_mapping(declaration: Mapping[str, Any]) -> Nested:
    """Parse the mapping declaration form into a ``Nested`` tree.

    The ``"/"`` entry becomes the root. Every other top-level entry is
    appended as a child of the root, after the root's own ``scopes``.
    """
    if ROOT_SLUG not in declaration:
        msg = (
            f"Scope declarations must contain a root {ROOT_SLUG!r} entry; "
            f"got {list(declaration)!r}."
        )
        raise MissingRootSlugError(msg)

    root_assigns, root_scopes = _entry_parts(ROOT_SLUG, declaration[ROOT_SLUG])
    siblings = [
        _node_from_mapping(slug, entry)
        for slug, entry in declaration.items()
        if slug != ROOT_SLUG
    ]
    children = (*_children_from_mapping(root_scopes), *siblings)
    return Nested(slug="", assigns=root_assigns, children=children)


def _children_from_mapping(scopes: Mapping[str, Any]) -> list[Nested]:
    return [_node_from_mapping(slug, entry) for slug, entry in scopes.items()]


def _entry_parts(slug: str, entry: Any) -> tuple[Mapping[str, Any], Mapping[str, Any]]:
    """Validate one declaration entry and return its ``assigns`` and ``scopes``."""
    entry = entry or {}
    if not isinstance(entry, Mapping):
        msg = f"Scope {slug!r} must map to a dict with 'assigns' and/or 'scopes'."
        raise ConfigurationError(msg)
    unknown = set(entry) - {"assigns", "scopes"}
    if unknown:
        msg = f"Scope {slug!r} has unknown options: {sorted(unknown)!r}."
        raise ConfigurationError(msg)
    assigns = entry.get("assigns") or {}
    scopes = entry.get("scopes") or {}
    if not isinstance(assigns, Mapping):
        msg = f"Scope {slug!r}: 'assigns' must be a dict, not {type(assigns).__name__}."
        raise ConfigurationError(msg)
    if not isinstance(scopes, Mapping):
        msg = f"Scope {slug!r}: 'scopes' must be a dict, not {type(scopes).__name__}."
        raise ConfigurationError(msg)
    return assigns, scopes


def _node_from_mapping(slug: Any, entry: Any) -> Nested:
    if not isinstance(slug, str):
        msg = f"Scope slugs must be strings like '/en', not {slug!r}."
        raise ScopeSlugError(msg)
    assigns, scopes = _entry_parts(slug, entry)
    return Nested(
        slug=validate_slug(slug.removeprefix("/")),
        assigns=assigns,
        children=tuple(_children_from_mapping(scopes)),
    )


def parse_flat(entries: Iterable[FlatScope | Mapping[str, Any]]) -> tuple[FlatScope, ...]:
    """Accept ``FlatScope`` objects or ``{"path": ..., "assigns": ...}`` mappings."""
    flat: list[FlatScope] = []
    for entry in entries:
        if isinstance(entry, FlatScope):
            for segment in entry.path_segments:
                validate_slug(segment)
            flat.append(entry)
        elif isinstance(entry, Mapping):
            path = entry.get("path")
            if not isinstance(path, str):
                msg = f"Flat scope entries need a string 'path'; got {entry!r}."
                raise ConfigurationError(msg)
            segments = tuple(validate_slug(part) for part in path.strip("/").split("/") if part)
            flat.append(FlatScope(segments, entry.get("assigns") or {}))
        else:
            msg = f"Flat scope entries must be FlatScope or dict, not {type(entry).__name__}."
            raise ConfigurationError(msg)

    if not flat:
        msg = "At least one scope must be declared."
        raise ConfigurationError(msg)
    result = tuple(flat)
    _check_unique(result)
    return result


def check_schema(flat: Sequence[FlatScope]) -> frozenset[str]:
    """Return the shared assign key set, or raise ``AssignsSchemaError``.

    The schema is homogeneous when union minus intersection is empty.
    """
    if not flat:
        return frozenset()
    union: set[str] = set()
    intersection = set(flat[0].schema)
    for entry in flat:
        union |= entry.schema
        intersection &= entry.schema
    drift = frozenset(union - intersection)
    if drift:
        offenders = [entry.path for entry in flat if not drift <= entry.schema]
        msg = (
            f"All scopes must declare the same assign keys. Keys {sorted(drift)!r} "
            f"are missing from some scopes: {offenders!r}."
        )
        raise AssignsSchemaError(msg, keys=drift)
    return frozenset(intersection)


def nest(flat: Sequence[FlatScope]) -> Nested | None:
    """Rebuild a tree from a prefix-closed Flat list.

    Returns ``None`` when the list has no root entry or an entry's parent
    is missing. Assigns are kept as merged, so ``flatten(nest(flat))``
    reproduces *flat* when the list is in pre-order.
    """
    by_segments = {entry.path_segments: entry for entry in flat}
    if () not in by_segments:
        return None

    children: dict[tuple[str, ...], list[tuple[str, ...]]] = {}
    for entry in flat:
        if not entry.path_segments:
            continue
        parent = entry.path_segments[:-1]
        if parent not in by_segments:
            return None
        children.setdefault(parent, []).append(entry.path_segments)

    def build(segments: tuple[str, ...]) -> Nested:
        entry = by_segments[segments]
        return Nested(
            slug=entry.prefix,
            assigns=entry.assigns,
            children=tuple(build(child) for child in children.get(segments, ())),
        )

    return build(())


def _check_unique(flat: Sequence[FlatScope]) -> None:
    seen: set[tuple[str, ...]] = set()
    for entry in flat:
        if entry.path_segments in seen:
            msg = f"Scope {entry.path!r} is declared more than once."
            raise DuplicateScopeError(msg)
        seen.add(entry.path_segments)
