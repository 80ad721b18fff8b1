"""Parrot exception hierarchy.

Shared across scopes, Router, App, handler, and middleware so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class ParrotError(Exception):
    """Base for all parrot-specific errors."""


class ConfigurationError(ParrotError):
    """Raised when app or scope configuration is invalid.

    Typically raised by ``build_config()`` or during ``App._freeze()``
    at startup. Never recovered.
    """


class DuplicateScopeError(ConfigurationError):
    """Two scopes produce the same path segments."""


class ScopeSlugError(ConfigurationError):
    """A scope slug is not a single, non-empty path segment."""


class AssignsSchemaError(ConfigurationError):
    """Scope assigns do not share one key set.

    ``keys`` holds the keys present in some scopes but not in all of them.
    """

    def __init__(self, message: str, keys: frozenset[str] = frozenset()) -> None:
        super().__init__(message)
        self.keys = keys


class MissingRootSlugError(ConfigurationError):
    """The scope tree has no root slug, or a route's scope tag is unknown.

    At build time: the declaration lacks the ``"/"`` root.
    At request time: a matched route carries a scope key that the
    active configuration does not know (build/runtime state mismatch).
    """


class MissingLocaleAssignError(ParrotError):
    """The configured assign key is absent where it is required."""

    def __init__(self, assign_key: str, detail: str = "") -> None:
        message = f"No {assign_key!r} assign is available"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.assign_key = assign_key


class AssignsMismatchError(ParrotError):
    """Render-visible assign keys differ from the declared scope schema."""

    def __init__(
        self,
        assign_key: str,
        missing: frozenset[str],
        extra: frozenset[str],
    ) -> None:
        parts: list[str] = []
        if missing:
            parts.append(f"missing {sorted(missing)}")
        if extra:
            parts.append(f"unexpected {sorted(extra)}")
        message = f"Assigns under {assign_key!r} do not match the scope schema"
        super().__init__(f"{message}: {', '.join(parts)}")
        self.assign_key = assign_key
        self.missing = missing
        self.extra = extra


@dataclass(frozen=True, slots=True)
class HTTPError(ParrotError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The ASGI handler
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
