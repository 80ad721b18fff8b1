"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    LocaleMiddleware -- Resolve the request's scope and seed its assigns
"""

from parrot.middleware.locale import LocaleMiddleware
from parrot.middleware.protocol import AnyResponse, Middleware, Next

__all__ = [
    "AnyResponse",
    "LocaleMiddleware",
    "Middleware",
    "Next",
]
