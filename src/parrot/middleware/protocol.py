"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> AnyResponse: ...

No base class required. The framework checks the shape, not the lineage.
By the time middleware runs, ``request.route`` already holds the matched
route (or ``None``), so middleware can act on route metadata such as the
scope tag.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from parrot.http.request import Request
from parrot.http.response import Response, SSEResponse

# Any response type the pipeline can produce
AnyResponse: TypeAlias = Response | SSEResponse

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Protocol for parrot middleware.

    Accepts both functions and callable objects::

        async def timing(request: Request, next: Next) -> AnyResponse:
            start = time.monotonic()
            response = await next(request)
            return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
