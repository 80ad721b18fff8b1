"""Raw ASGI type aliases. Users never see these."""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]

# Route handler — user-defined function with variable signature
Handler: TypeAlias = Callable[..., Any]

# Error handler — receives (request, error?) and returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]

# Mount hook — receives (connection, router) before a live handler runs
MountHook: TypeAlias = Callable[..., Any]
