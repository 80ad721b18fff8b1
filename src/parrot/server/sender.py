"""ASGI response sending.

HEAD requests are routed to GET handlers, so the body is dropped here
while ``content-length`` still reports the GET body size.
"""

from parrot._internal.asgi import Send
from parrot.http.response import Response


def _status_allows_body(status: int) -> bool:
    # 1xx, 204, and 304 responses carry no message body
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send, *, method: str = "GET") -> None:
    """Translate a parrot Response into ASGI start and body messages."""
    body = response.body_bytes if _status_allows_body(response.status) else b""

    headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send({"type": "http.response.start", "status": response.status, "headers": headers})
    await send({"type": "http.response.body", "body": b"" if method == "HEAD" else body})
