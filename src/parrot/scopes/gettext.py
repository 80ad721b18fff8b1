"""Route segment translation through a gettext backend.

Static route segments (``products`` in ``/products/{id}``) can be
translated per scope, so ``/nl/producten/{id}`` and ``/products/{id}``
share one declaration. Parameter segments are never translated.

Any object with a ``gettext(locale, message)`` method works as a backend.
``GettextCatalog`` binds the standard library's ``gettext`` catalogs,
looking up ``<localedir>/<locale>/LC_MESSAGES/<domain>.mo``::

    backend = GettextCatalog("priv/locale", domain="routes")
"""

import gettext as gettext_module
import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from parrot.routing.router import parse_path

DEFAULT_DOMAIN = "routes"


class GettextBackend(Protocol):
    """Translates a message for a locale."""

    def gettext(self, locale: str, message: str) -> str: ...


class GettextCatalog:
    """Backend over stdlib ``gettext`` catalogs, one per locale.

    Catalogs are loaded lazily and cached. Missing catalogs fall back to
    the untranslated message.
    """

    __slots__ = ("_cache", "_lock", "domain", "localedir")

    def __init__(self, localedir: str | Path, *, domain: str = DEFAULT_DOMAIN) -> None:
        self.localedir = str(localedir)
        self.domain = domain
        self._cache: dict[str, gettext_module.NullTranslations] = {}
        self._lock = threading.Lock()

    def translation(self, locale: str) -> gettext_module.NullTranslations:
        """Return (and cache) the catalog for *locale*."""
        catalog = self._cache.get(locale)
        if catalog is not None:
            return catalog
        with self._lock:
            catalog = self._cache.get(locale)
            if catalog is None:
                catalog = gettext_module.translation(
                    self.domain,
                    localedir=self.localedir,
                    languages=[locale],
                    fallback=True,
                )
                self._cache[locale] = catalog
        return catalog

    def gettext(self, locale: str, message: str) -> str:
        return self.translation(locale).gettext(message)


def translate_path(path: str, locale: str, backend: GettextBackend) -> str:
    """Translate the static segments of a route *path* for *locale*."""
    parts: list[str] = []
    for segment in parse_path(path):
        if segment.is_param:
            parts.append(segment.value)
        else:
            parts.append(backend.gettext(locale, segment.value) or segment.value)
    return "/" + "/".join(parts)


def translatable_segments(paths: Iterable[str]) -> list[str]:
    """Collect unique static segments from route paths, in first-seen order."""
    seen: dict[str, None] = {}
    for path in paths:
        for segment in parse_path(path):
            if not segment.is_param:
                seen.setdefault(segment.value, None)
    return list(seen)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def render_pot(segments: Iterable[str], *, domain: str = DEFAULT_DOMAIN) -> str:
    """Render a gettext template (``.pot``) with one msgid per segment."""
    created = datetime.now(UTC).strftime("%Y-%m-%d %H:%M%z")
    lines = [
        f"# Translatable route segments ({domain} domain).",
        'msgid ""',
        'msgstr ""',
        '"Content-Type: text/plain; charset=UTF-8\\n"',
        f'"POT-Creation-Date: {created}\\n"',
        "",
    ]
    for segment in segments:
        lines.append(f'msgid "{_escape(segment)}"')
        lines.append('msgstr ""')
        lines.append("")
    return "\n".join(lines)
