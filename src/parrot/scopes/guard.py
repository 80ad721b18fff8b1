"""Assigns consistency checks.

``check_assigns`` compares the declared scope schema with the keys a
handler actually exposed to rendering. It is a pure set comparison and
returns an ``AssignsCheck`` value; ``raise_for_error()`` escalates.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from parrot.errors import AssignsMismatchError, MissingLocaleAssignError

if TYPE_CHECKING:
    from parrot.scopes.config import ScopeConfig


@dataclass(frozen=True, slots=True)
class AssignsCheck:
    """Difference between declared and actual assign keys."""

    assign_key: str
    missing: frozenset[str]
    extra: frozenset[str]

    @property
    def ok(self) -> bool:
        return not self.missing and not self.extra

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_error(self) -> None:
        if not self.ok:
            raise AssignsMismatchError(self.assign_key, self.missing, self.extra)


def check_assigns(
    schema: Iterable[str],
    keys: Iterable[str],
    *,
    assign_key: str = "locale",
) -> AssignsCheck:
    """Compare *schema* against *keys*; ordering is irrelevant."""
    declared = frozenset(schema)
    actual = frozenset(keys)
    return AssignsCheck(
        assign_key=assign_key,
        missing=declared - actual,
        extra=actual - declared,
    )


def verify_render_assigns(
    context: Mapping[str, Any],
    config: ScopeConfig,
    *,
    scoped: bool,
) -> AssignsCheck | None:
    """Check the scope assigns inside a render *context*.

    Returns ``None`` for an unscoped request; a value under the assign
    key is then ordinary template data. Raises
    ``MissingLocaleAssignError`` when a scoped request renders without
    the assign key, and ``AssignsMismatchError`` when the keys drift
    from the schema.
    """
    if not scoped:
        return None
    if config.assign_key not in context:
        raise MissingLocaleAssignError(
            config.assign_key,
            "the render context of a scoped request lost it",
        )

    value = context[config.assign_key]
    if not isinstance(value, Mapping):
        raise AssignsMismatchError(config.assign_key, config.schema, frozenset())
    result = check_assigns(config.schema, value.keys(), assign_key=config.assign_key)
    result.raise_for_error()
    return result
