"""SSE testing utilities.

Structured parsing of Server-Sent Events responses for test assertions.
"""

import contextlib
from dataclasses import dataclass, field

from parrot.realtime.events import SSEEvent


@dataclass(frozen=True, slots=True)
class SSETestResult:
    """Collected events from an SSE endpoint.

    Returned by ``TestClient.sse()`` after the connection closes. ``body``
    holds the raw text, useful when the endpoint failed before streaming.
    """

    events: tuple[SSEEvent, ...]
    heartbeats: int
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def parse_sse_frames(raw: str) -> tuple[list[SSEEvent], int]:
    """Parse raw SSE text into structured events and heartbeat count.

    Comment blocks containing "heartbeat" are counted, not returned.
    """
    events: list[SSEEvent] = []
    heartbeats = 0

    for block in raw.split("\n\n"):
        if not block.strip():
            continue

        if block.startswith(":"):
            if "heartbeat" in block:
                heartbeats += 1
            continue

        event_type: str | None = None
        data_lines: list[str] = []
        event_id: str | None = None
        retry: int | None = None

        for line in block.split("\n"):
            if line.startswith("event: "):
                event_type = line[7:]
            elif line.startswith("data: "):
                data_lines.append(line[6:])
            elif line.startswith("id: "):
                event_id = line[4:]
            elif line.startswith("retry: "):
                with contextlib.suppress(ValueError):
                    retry = int(line[7:])

        if data_lines:
            events.append(
                SSEEvent(data="\n".join(data_lines), event=event_type, id=event_id, retry=retry)
            )

    return events, heartbeats
