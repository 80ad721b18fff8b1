"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        return replace(self, headers=(*self.headers, *headers.items()))

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), if any."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect response."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class SSEResponse:
    """Sentinel response for Server-Sent Events.

    Wraps an EventStream and requires direct ASGI send/receive access.
    ``render`` is bound to the request that opened the stream, so
    fragments pushed later render with that connection's assigns.
    The ``.with_*()`` methods are no-ops so middleware chains don't crash.
    """

    event_stream: Any  # EventStream (avoided import cycle)
    render: Any = None  # Callable[[Fragment], str] | None

    def with_status(self, status: int) -> SSEResponse:  # noqa: ARG002
        return self

    def with_header(self, name: str, value: str) -> SSEResponse:  # noqa: ARG002
        return self

    def with_headers(self, headers: Mapping[str, str]) -> SSEResponse:  # noqa: ARG002
        return self
