"""Content negotiation — maps return values to Response objects.

``negotiate`` inspects the return value from a route handler and
produces the appropriate Response. isinstance-based dispatch, no magic,
fully predictable.
"""

from __future__ import annotations

import json as json_module
from typing import TYPE_CHECKING, Any

from parrot.errors import ConfigurationError
from parrot.http.response import Redirect, Response, SSEResponse
from parrot.realtime.events import EventStream
from parrot.templating.returns import Fragment, InlineTemplate, Template

if TYPE_CHECKING:
    from parrot.http.request import Request
    from parrot.templating.integration import Renderer


def negotiate(
    value: Any,
    *,
    renderer: Renderer | None = None,
    request: Request | None = None,
) -> Response | SSEResponse:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``         -> pass through
    2. ``Redirect``         -> 302 with Location header
    3. ``Template``         -> render via kida -> Response
    4. ``InlineTemplate``   -> render source via kida -> Response
    5. ``Fragment``         -> render block via kida -> Response
    6. ``EventStream``      -> SSEResponse (handler dispatches to SSE)
    7. ``str``              -> 200, text/html
    8. ``bytes``            -> 200, application/octet-stream
    9. ``dict`` / ``list``  -> 200, application/json
    10. ``(value, int)``    -> negotiate value, override status
    11. ``(value, int, dict)`` -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case Redirect():
            return (
                Response(body="")
                .with_status(value.status)
                .with_header("Location", value.url)
                .with_headers(dict(value.headers))
            )
        case Template() | InlineTemplate() | Fragment() if renderer is None:
            msg = (
                f"{type(value).__name__} return type requires kida integration. "
                "Ensure a template_dir is configured in AppConfig."
            )
            raise ConfigurationError(msg)
        case Template():
            return Response(body=renderer.render_template(value, request))
        case InlineTemplate():
            return Response(body=renderer.render_inline(value, request))
        case Fragment():
            return Response(body=renderer.render_fragment(value, request))
        case EventStream():
            return SSEResponse(
                event_stream=value,
                render=renderer.bind(request) if renderer is not None else None,
            )
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(
                body=json_module.dumps(value, default=str),
                content_type="application/json; charset=utf-8",
            )
        case (inner, int() as status):
            response = negotiate(inner, renderer=renderer, request=request)
            if isinstance(response, Response):
                return response.with_status(status)
            return response
        case (inner, int() as status, dict() as headers):
            response = negotiate(inner, renderer=renderer, request=request)
            if isinstance(response, Response):
                return response.with_status(status).with_headers(headers)
            return response
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return str, dict, bytes, Template, InlineTemplate, Fragment, "
                f"EventStream, Response, or Redirect."
            )
            raise TypeError(msg)
