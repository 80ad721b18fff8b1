"""ASGI handler — translates ASGI scope/messages to parrot types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, matches the route, dispatches through
middleware, and sends the Response back through ASGI send().

The route is matched before middleware runs, so middleware sees
``request.route`` (and its scope tag). A failed match is raised from the
innermost dispatch, after middleware had its turn.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from contextvars import Token
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from parrot._internal.asgi import MountHook, Receive, Scope, Send
from parrot._internal.invoke import invoke
from parrot.context import g, request_var
from parrot.errors import HTTPError
from parrot.http.request import Request
from parrot.http.response import SSEResponse
from parrot.middleware.protocol import AnyResponse, Next
from parrot.realtime.mount import Connection
from parrot.routing.router import Router
from parrot.server.errors import handle_http_error, handle_internal_error
from parrot.server.negotiation import negotiate
from parrot.server.sender import send_response

if TYPE_CHECKING:
    from parrot.templating.integration import Renderer


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    renderer: Renderer | None = None,
    mount_hooks: Sequence[MountHook] = (),
    debug: bool,
    sse_heartbeat_interval: float = 15.0,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)

    match_error: HTTPError | None = None
    try:
        match = router.match(request.method, request.path)
    except HTTPError as exc:
        match_error = exc
    else:
        request = request.with_match(match)

    # Set request context var (reset after dispatch)
    token: Token[Request] = request_var.set(request)

    try:

        async def dispatch(req: Request) -> AnyResponse:
            if match_error is not None:
                raise match_error
            return await _invoke_handler(
                req,
                router=router,
                renderer=renderer,
                mount_hooks=mount_hooks,
            )

        # Wrap middleware around the dispatch
        handler = dispatch
        for mw in reversed(middleware):
            outer = handler
            mw_ref = mw

            async def make_next(req: Request, _mw: Any = mw_ref, _next: Next = outer) -> AnyResponse:
                return await _mw(req, _next)

            handler = make_next

        response = await handler(request)

    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, renderer, debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, renderer, debug)
    finally:
        g._reset()
        request_var.reset(token)

    if isinstance(response, SSEResponse):
        from parrot.realtime.sse import handle_sse

        stream = response.event_stream
        if stream.heartbeat_interval == 15.0:
            stream = replace(stream, heartbeat_interval=sse_heartbeat_interval)

        await handle_sse(stream, send, receive, render=response.render, debug=debug)
    else:
        await send_response(response, send, method=request.method)


async def _invoke_handler(
    request: Request,
    *,
    router: Router,
    renderer: Renderer | None = None,
    mount_hooks: Sequence[MountHook] = (),
) -> AnyResponse:
    """Call the matched route handler, converting path params and return value."""
    route = request.route
    assert route is not None

    connection: Connection | None = None
    if route.live:
        connection = Connection.from_request(request)
        for hook in mount_hooks:
            await invoke(hook, connection, router)

    kwargs = _build_handler_kwargs(route.handler, request, request.path_params, connection)

    # Call the handler (sync or async — invoke() handles both)
    result = await invoke(route.handler, **kwargs)

    return negotiate(result, renderer=renderer, request=request)


def _build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    path_params: dict[str, str],
    connection: Connection | None = None,
) -> dict[str, Any]:
    """Inspect handler signature and build kwargs from request + path params.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. ``connection`` parameter on live routes (by name or ``Connection`` annotation)
    3. Path parameters (by name, with type conversion)
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif connection is not None and (name == "connection" or param.annotation is Connection):
            kwargs[name] = connection
        elif name in path_params:
            # Convert path param to annotated type if possible
            value = path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value

    return kwargs
