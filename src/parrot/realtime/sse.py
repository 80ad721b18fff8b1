"""Server-Sent Events protocol implementation over ASGI.

Sends ``text/event-stream`` headers, produces events from an async
generator, watches for client disconnect, and sends heartbeat comments
while the generator is idle.
"""

import asyncio
import contextlib
import json as json_module
import logging
from collections.abc import Callable
from typing import Any

from parrot._internal.asgi import Receive, Send
from parrot.realtime.events import EventStream, SSEEvent
from parrot.templating.returns import Fragment

logger = logging.getLogger("parrot.server")


async def handle_sse(
    event_stream: EventStream,
    send: Send,
    receive: Receive,
    *,
    render: Callable[[Fragment], str] | None = None,
    debug: bool = False,
) -> None:
    """Stream Server-Sent Events over an ASGI connection.

    Runs an event producer and a disconnect monitor concurrently; the
    first to finish cancels the other, then the body is closed.
    """
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [
                (b"content-type", b"text/event-stream"),
                (b"cache-control", b"no-cache"),
                (b"connection", b"keep-alive"),
                (b"x-accel-buffering", b"no"),
            ],
        }
    )

    disconnected = asyncio.Event()

    async def monitor_disconnect() -> None:
        while not disconnected.is_set():
            message = await receive()
            if message.get("type") == "http.disconnect":
                disconnected.set()
                return

    async def send_chunk(text: str) -> bool:
        try:
            await send({"type": "http.response.body", "body": text.encode("utf-8"), "more_body": True})
        except RuntimeError:
            return False  # Response already closed (client disconnected)
        return True

    async def produce_events() -> None:
        # asyncio.wait keeps the pending __anext__() task alive across
        # heartbeat timeouts (wait_for would cancel it).
        pending_next: asyncio.Task[Any] | None = None
        gen_iter = event_stream.generator.__aiter__()

        async def _next() -> Any:
            return await gen_iter.__anext__()

        try:
            while not disconnected.is_set():
                if pending_next is None:
                    pending_next = asyncio.create_task(_next())

                done, _ = await asyncio.wait({pending_next}, timeout=event_stream.heartbeat_interval)
                if not done:
                    if disconnected.is_set() or not await send_chunk(": heartbeat\n\n"):
                        break
                    continue

                pending_next = None
                try:
                    value = done.pop().result()
                except StopAsyncIteration:
                    break

                try:
                    text = format_event(value, default_event=event_stream.event_type, render=render)
                except Exception as exc:
                    # One bad event does not end the stream
                    logger.exception("SSE event render failed")
                    if not debug:
                        continue
                    text = SSEEvent(data=f"{type(exc).__name__}: {exc}", event="error").encode()

                if not await send_chunk(text):
                    break
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("SSE stream failed")
            with contextlib.suppress(Exception):
                await send_chunk(SSEEvent(data="Internal server error", event="error").encode())
        finally:
            if pending_next is not None:
                if not pending_next.done():
                    pending_next.cancel()
                with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                    await pending_next

    producer_task = asyncio.create_task(produce_events())
    monitor_task = asyncio.create_task(monitor_disconnect())
    try:
        _done, pending = await asyncio.wait(
            {producer_task, monitor_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
    finally:
        await send({"type": "http.response.body", "body": b"", "more_body": False})


def format_event(
    value: Any,
    *,
    default_event: str | None = None,
    render: Callable[[Fragment], str] | None = None,
) -> str:
    """Convert a yielded value to SSE wire format."""
    if isinstance(value, SSEEvent):
        return value.encode()

    if isinstance(value, Fragment):
        if render is None:
            msg = "Fragment events require a template environment."
            raise RuntimeError(msg)
        return SSEEvent(data=render(value), event=value.target or "fragment").encode()

    if isinstance(value, dict):
        return SSEEvent(data=json_module.dumps(value, default=str), event=default_event).encode()

    return SSEEvent(data=str(value), event=default_event).encode()
