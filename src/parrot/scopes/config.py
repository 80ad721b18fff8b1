"""Scope configuration.

``ScopeConfig`` is a frozen dataclass built once at startup by
``build_config()`` and passed explicitly to the expander, the resolver
middleware, and the mount hook. Validation happens here, so a bad
declaration fails application start instead of a request.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from parrot.errors import ConfigurationError
from parrot.scopes.model import FlatScope, Nested
from parrot.scopes.normalize import ScopeDeclaration, check_schema, from_mapping, normalize

if TYPE_CHECKING:
    from parrot.scopes.gettext import GettextBackend

logger = logging.getLogger("parrot.scopes")

DEFAULT_ASSIGN_KEY = "locale"


@dataclass(frozen=True, slots=True)
class ScopeConfig:
    """Validated, immutable scope configuration.

    Build it with ``build_config()``; the derived fields (``flat``,
    ``index``, ``schema``) are computed there.
    """

    scopes: Nested | tuple[FlatScope, ...]
    flat: tuple[FlatScope, ...]
    schema: frozenset[str]
    assign_key: str = DEFAULT_ASSIGN_KEY
    default_locale: str = "en"
    gettext_backend: GettextBackend | None = None
    # Assigns key naming each scope's gettext locale
    locale_field: str = "locale"
    index: Mapping[str, FlatScope] = field(default_factory=dict, repr=False, compare=False)

    @property
    def nested(self) -> Nested | None:
        """The declared tree, or ``None`` when scopes were declared flat."""
        return self.scopes if isinstance(self.scopes, Nested) else None

    def lookup(self, key: str) -> FlatScope | None:
        """Find a scope by key (``"en/us"``) or path (``"/en/us"``)."""
        return self.index.get(key.strip("/"))

    def locale_for(self, scope: FlatScope) -> str:
        """The gettext locale of *scope*, falling back to ``default_locale``."""
        value = scope.assigns.get(self.locale_field)
        return value if isinstance(value, str) and value else self.default_locale


def build_config(
    *,
    scopes: ScopeDeclaration | None = None,
    assign_key: str | None = None,
    default_locale: str = "en",
    gettext_backend: GettextBackend | None = None,
    locale_field: str = "locale",
    **unknown: Any,
) -> ScopeConfig:
    """Validate options and return an immutable ``ScopeConfig``.

    Raises ``ConfigurationError`` (or a subclass) for a missing or
    malformed scope declaration, duplicate scopes, heterogeneous assign
    keys, and unrecognized options.
    """
    if unknown:
        msg = f"Unknown scope options: {sorted(unknown)!r}."
        raise ConfigurationError(msg)
    if scopes is None:
        msg = "The 'scopes' option is required."
        raise ConfigurationError(msg)

    key = DEFAULT_ASSIGN_KEY if assign_key is None else assign_key
    if not isinstance(key, str) or not key.isidentifier():
        msg = f"assign_key must be a non-empty identifier string, got {key!r}."
        raise ConfigurationError(msg)
    if gettext_backend is not None and not callable(getattr(gettext_backend, "gettext", None)):
        msg = "gettext_backend must provide a gettext(locale, message) method."
        raise ConfigurationError(msg)

    if isinstance(scopes, Mapping):
        scopes = from_mapping(scopes)
    flat = normalize(scopes)
    schema = check_schema(flat)
    declared: Nested | tuple[FlatScope, ...] = scopes if isinstance(scopes, Nested) else flat

    logger.debug("Built scope config: %d scopes, assign key %r", len(flat), key)
    return ScopeConfig(
        scopes=declared,
        flat=flat,
        schema=schema,
        assign_key=key,
        default_locale=default_locale,
        gettext_backend=gettext_backend,
        locale_field=locale_field,
        index=MappingProxyType({entry.key: entry for entry in flat}),
    )
