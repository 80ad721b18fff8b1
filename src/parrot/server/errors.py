"""Error handling pipeline for parrot requests.

Maps HTTPError exceptions and unexpected failures (scope resolution and
assigns errors included) to Response objects, using registered error
handlers or sensible defaults.
"""

from __future__ import annotations

import html
import inspect
import logging
import traceback
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from parrot.errors import HTTPError
from parrot.http.request import Request
from parrot.http.response import Response
from parrot.server.negotiation import negotiate

if TYPE_CHECKING:
    from parrot.templating.integration import Renderer

logger = logging.getLogger("parrot.server")


def default_fragment_error(status: int, detail: str) -> str:
    """Minimal HTML snippet for fragment error responses."""
    return f'<div class="parrot-error" data-status="{status}">{html.escape(detail)}</div>'


def _with_htmx_error_headers(response: Response, request: Request) -> Response:
    """Add htmx error-handling headers when the request is a fragment.

    Headers added:
    - ``HX-Retarget: #parrot-error`` — redirect error content to a dedicated container
    - ``HX-Reswap: innerHTML`` — replace (not append) the error content
    - ``HX-Trigger: parrotError`` — fire a client-side event for custom handling
    """
    if not request.is_fragment:
        return response
    return (
        response.with_header("HX-Retarget", "#parrot-error")
        .with_header("HX-Reswap", "innerHTML")
        .with_header("HX-Trigger", "parrotError")
    )


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
    renderer: Renderer | None,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc) args.
    Supports both sync and async error handlers.
    """
    sig = inspect.signature(handler)
    params = list(sig.parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result

    if isinstance(result, Response):
        return result
    response = negotiate(result, renderer=renderer, request=request)
    if not isinstance(response, Response):
        msg = "Error handlers cannot return an EventStream."
        raise TypeError(msg)
    return response


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    renderer: Renderer | None,
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc, renderer)
        # Keep the exception's status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    # Fragment-aware: return a snippet instead of a full page
    body = default_fragment_error(exc.status, detail) if request.is_fragment else detail

    resp = Response(body=body).with_status(exc.status)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return _with_htmx_error_headers(resp, request)


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    renderer: Renderer | None,
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        return await call_error_handler(handler, request, exc, renderer)

    if debug:
        trace = "".join(traceback.format_exception(exc))
        if request.is_fragment:
            body = default_fragment_error(500, trace)
        else:
            body = f"<h1>500 Internal Server Error</h1>\n<pre>{html.escape(trace)}</pre>"
        return _with_htmx_error_headers(Response(body=body, status=500), request)

    if request.is_fragment:
        resp = Response(body=default_fragment_error(500, "Internal Server Error"), status=500)
        return _with_htmx_error_headers(resp, request)

    return Response(body="Internal Server Error", status=500)
