"""Async test client for parrot applications.

Uses the same Request and Response types as production.
No wrapper translation layer.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

from parrot._internal.invoke import invoke
from parrot.app import App
from parrot.http.response import Response
from parrot.testing.sse import SSETestResult, parse_sse_frames


def _build_scope(method: str, path: str, headers: dict[str, str] | None) -> dict[str, Any]:
    path_part, _, query_string = path.partition("?")
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method.upper(),
        "path": path_part,
        "raw_path": path_part.encode("latin-1"),
        "query_string": query_string.encode("latin-1"),
        "root_path": "",
        "headers": raw_headers,
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 0),
    }


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for parrot applications.

    Returns the same ``Response`` type used in production. Sends requests
    through the ASGI interface directly — no HTTP involved.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/nl/about")
            assert response.status == 200
    """

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        for hook in self.app._startup_hooks:
            await invoke(hook)
        return self

    async def __aexit__(self, *args: object) -> None:
        for hook in self.app._shutdown_hooks:
            await invoke(hook)

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send a POST request."""
        return await self.request("POST", path, headers=headers, body=body)

    async def fragment(
        self,
        path: str,
        *,
        current_url: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Response:
        """Send an htmx fragment request (``HX-Request``, optional ``HX-Current-URL``)."""
        fragment_headers = {"HX-Request": "true"}
        if current_url is not None:
            fragment_headers["HX-Current-URL"] = current_url
        fragment_headers.update(headers or {})
        return await self.request("GET", path, headers=fragment_headers)

    async def sse(
        self,
        path: str,
        *,
        current_url: str | None = None,
        headers: dict[str, str] | None = None,
        max_events: int = 10,
        disconnect_after: float | None = None,
    ) -> SSETestResult:
        """Connect to an SSE endpoint and collect events.

        The connection stays open until ``max_events`` data events have
        arrived, ``disconnect_after`` seconds have elapsed, or the server
        closes the stream. *current_url* is sent as ``HX-Current-URL``,
        the page a live connection belongs to.

        Usage::

            result = await client.sse("/live/cart", current_url="/nl/cart", max_events=1)
            assert result.events[0].data == "nl"
        """
        sse_headers = {"Accept": "text/event-stream"}
        if current_url is not None:
            sse_headers["HX-Current-URL"] = current_url
        sse_headers.update(headers or {})
        scope = _build_scope("GET", path, sse_headers)

        # receive() blocks until we want to disconnect; the SSE handler's
        # disconnect monitor then cancels the producer.
        disconnect_trigger = asyncio.Event()
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": b"", "more_body": False}
            await disconnect_trigger.wait()
            return {"type": "http.disconnect"}

        response_status = 200
        response_headers_raw: list[tuple[bytes, bytes]] = []
        body_buffer: list[bytes] = []
        event_count = 0

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, event_count
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers_raw.extend(message.get("headers", []))
            elif message["type"] == "http.response.body":
                chunk = message.get("body", b"")
                if not chunk:
                    return
                body_buffer.append(chunk)
                text = chunk.decode("utf-8", errors="replace")
                for block in text.split("\n\n"):
                    if any(line.startswith("data: ") for line in block.strip().split("\n")):
                        event_count += 1
                if event_count >= max_events and not disconnect_trigger.is_set():
                    disconnect_trigger.set()
                    # Yield so the disconnect monitor sees the trigger
                    await asyncio.sleep(0)

        app_task = asyncio.create_task(self.app(scope, receive, send))

        try:
            if disconnect_after is not None:
                await asyncio.sleep(disconnect_after)
                disconnect_trigger.set()
            await asyncio.wait_for(app_task, timeout=(disconnect_after or 0) + 5.0)
        except TimeoutError:
            disconnect_trigger.set()
            app_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await app_task

        raw_text = b"".join(body_buffer).decode("utf-8", errors="replace")
        events, heartbeats = parse_sse_frames(raw_text)

        return SSETestResult(
            events=tuple(events),
            heartbeats=heartbeats,
            status=response_status,
            headers={k.decode("latin-1"): v.decode("latin-1") for k, v in response_headers_raw},
            body=raw_text,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app."""
        scope = _build_scope(method, path, headers)

        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        response_status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                response_body_parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        content_type = "text/html; charset=utf-8"
        extra_headers: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name_str = name_b.decode("latin-1")
            value_str = value_b.decode("latin-1")
            if name_str == "content-type":
                content_type = value_str
            elif name_str != "content-length":
                extra_headers.append((name_str, value_str))

        return Response(
            body=b"".join(response_body_parts),
            status=response_status,
            content_type=content_type,
            headers=tuple(extra_headers),
        )
