"""Parrot application class.

Mutable during setup (route registration, localized blocks, middleware,
filters, mount hooks). Frozen at runtime when ``__call__()`` is first
invoked: localized blocks are expanded into one route copy per scope and
compiled into the router together with the plain routes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from parrot._internal.asgi import ErrorHandler, Handler, MountHook, Receive, Scope, Send
from parrot._internal.invoke import invoke
from parrot.config import AppConfig
from parrot.errors import ConfigurationError
from parrot.middleware.protocol import Middleware
from parrot.routing.localize import RouteBlock, RouteFactory, expand
from parrot.routing.route import Route
from parrot.routing.router import Router
from parrot.scopes.config import ScopeConfig
from parrot.scopes.model import FlatScope
from parrot.server.handler import handle_request
from parrot.templating.integration import Renderer, create_environment

if TYPE_CHECKING:
    from parrot.localized import LocalizedRoutes

logger = logging.getLogger("parrot.server")


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    handler: Handler
    methods: list[str] | None
    name: str | None
    live: bool = False


@dataclass(slots=True)
class _PendingBlock:
    """A localized block waiting to be expanded."""

    block: RouteBlock | RouteFactory
    config: ScopeConfig


class App:
    """The parrot application.

    Mutable during setup (route registration, middleware, filters).
    Frozen at runtime when ``__call__()`` is first invoked.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even under free-threading where
        multiple ASGI workers could call ``__call__()`` concurrently on
        first request.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_mount_hooks",
        "_pending",
        "_renderer",
        # Compiled state (populated by _freeze)
        "_router",
        "_scope_config",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        # Plain routes and localized blocks, in registration order
        self._pending: list[_PendingRoute | _PendingBlock] = []
        self._middleware_list: list[Middleware] = []
        self._mount_hooks: list[MountHook] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._scope_config: ScopeConfig | None = None
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state — set during _freeze()
        self._router: Router | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._renderer: Renderer | None = None

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        live: bool = False,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name for URL generation.
            live: Persistent connection endpoint. Mount hooks run before
                the handler, which may take a ``connection`` parameter.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._pending.append(_PendingRoute(path, func, methods, name, live))
            return func

        return decorator

    def localize(
        self,
        block: RouteBlock | RouteFactory,
        scopes: ScopeConfig | LocalizedRoutes,
    ) -> None:
        """Register *block* to be repeated under every scope prefix.

        Expansion happens at freeze, in scope order. One app serves one
        scope configuration.
        """
        self._check_not_frozen()
        config = scopes if isinstance(scopes, ScopeConfig) else scopes.config
        if self._scope_config is not None and self._scope_config is not config:
            msg = "An app can only serve one scope configuration."
            raise ConfigurationError(msg)
        self._scope_config = config
        self._pending.append(_PendingBlock(block, config))

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Template integration --

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template filter."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            filter_name = name or func.__name__
            self._template_filters[filter_name] = func
            return func

        return decorator

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template global."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            global_name = name or func.__name__
            self._template_globals[global_name] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    def on_mount(self, hook: MountHook) -> MountHook:
        """Register a mount hook for live routes.

        Hooks receive ``(connection, router)`` and run in registration
        order before every live handler. Raising aborts the connection
        through the error pipeline.

        Usage::

            app.on_mount(routes.on_mount())
        """
        self._check_not_frozen()
        self._mount_hooks.append(hook)
        return hook

    # -- URL building --

    @property
    def router(self) -> Router:
        """The compiled router. Freezes the app on first access."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    @property
    def scope_config(self) -> ScopeConfig | None:
        return self._scope_config

    def url_for(
        self,
        name: str,
        *,
        scope: FlatScope | str | None = None,
        **params: object,
    ) -> str:
        """Build the path of a named route.

        *scope* selects the localized copy: a ``FlatScope``, a key
        (``"en/us"``) or a path (``"/en/us"``). ``None`` selects the
        plain route.
        """
        scope_key = None
        if scope is not None:
            if self._scope_config is None:
                msg = "This app has no localized routes."
                raise LookupError(msg)
            entry = scope if isinstance(scope, FlatScope) else self._scope_config.lookup(scope)
            if entry is None:
                msg = f"Unknown scope {scope!r}"
                raise LookupError(msg)
            scope_key = entry.key
        return self.router.url_for(name, scope_key=scope_key, **params)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan directly, then delegates HTTP scopes to the
        request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._router is not None

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            renderer=self._renderer,
            mount_hooks=tuple(self._mount_hooks),
            debug=self.config.debug,
            sse_heartbeat_interval=self.config.sse_heartbeat_interval,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), so a bad
        scope declaration or route table fails startup instead of a
        request. Then runs registered startup/shutdown hooks.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Compile route table, expanding localized blocks in place
        router = Router()
        for pending in self._pending:
            if isinstance(pending, _PendingBlock):
                for route in expand(pending.config.flat, pending.block, config=pending.config):
                    router.add(route)
                continue
            router.add(
                Route(
                    path=pending.path,
                    handler=pending.handler,
                    methods=frozenset(m.upper() for m in (pending.methods or ["GET"])),
                    name=pending.name,
                    live=pending.live,
                )
            )
        router.compile()

        # 2. Capture middleware as immutable tuple
        middleware = tuple(self._middleware_list)

        # 2b. Collect template globals from middleware
        # Middleware can define a `template_globals` dict attribute to
        # auto-register template globals (e.g. LocaleMiddleware -> current_scope).
        for mw in middleware:
            mw_globals = getattr(mw, "template_globals", None)
            if mw_globals and isinstance(mw_globals, dict):
                for name, func in mw_globals.items():
                    self._template_globals.setdefault(name, func)

        # 3. Template environment (only when a template directory is configured)
        env = None
        if self.config.template_dir is not None:
            env = create_environment(self.config, self._template_filters, self._template_globals)
        renderer = Renderer(
            self.config,
            env=env,
            filters=self._template_filters,
            globals_=self._template_globals,
            scope_config=self._scope_config,
        )

        self._router = router
        self._middleware = middleware
        self._renderer = renderer
        self._frozen = True
        logger.debug("App frozen with %d routes", len(router.routes))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and filters before the first request."
            )
            raise RuntimeError(msg)
