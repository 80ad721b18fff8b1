"""EventStream and SSEEvent types.

Frozen dataclasses for Server-Sent Events. The SSE handler inspects
these to format the wire protocol.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """A single Server-Sent Event."""

    data: str
    event: str | None = None
    id: str | None = None
    retry: int | None = None

    def encode(self) -> str:
        """Serialize to SSE wire format."""
        lines: list[str] = []
        if self.event:
            lines.append(f"event: {self.event}")
        if self.id:
            lines.append(f"id: {self.id}")
        if self.retry is not None:
            lines.append(f"retry: {self.retry}")
        lines.extend(f"data: {line}" for line in self.data.split("\n"))
        return "\n".join(lines) + "\n\n"


@dataclass(frozen=True, slots=True)
class EventStream:
    """Stream Server-Sent Events to the client.

    The generator yields values converted to SSE events:

    - ``str``: sent as data
    - ``dict``: JSON-serialized as data
    - ``Fragment``: rendered with the connection's assigns, ``event: fragment``
    - ``SSEEvent``: sent as-is

    Usage::

        @app.route("/live/prices", live=True)
        async def prices(connection: Connection):
            async def stream():
                async for price in feed.subscribe():
                    yield Fragment("prices.html", "row", price=price)
            return EventStream(stream())
    """

    generator: AsyncIterator[Any]
    event_type: str | None = None
    heartbeat_interval: float = 15.0
