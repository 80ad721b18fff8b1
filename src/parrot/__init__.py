"""Parrot — locale/region-scoped routing for ASGI apps.

Declare a tree of scopes (locale, region, brand) once; parrot repeats a
block of routes under every scope prefix, attaches the scope's assigns to
each request, and checks that rendered assigns keep the declared shape.

Basic usage::

    from parrot import App, LocalizedRoutes, Template

    routes = LocalizedRoutes(
        scopes={
            "/": {"assigns": {"locale": "en"}},
            "/nl": {"assigns": {"locale": "nl"}},
        },
    )
    block = routes.block()

    @block.route("/about", name="about")
    def about(request):
        return f"locale: {routes.assigned_values(request)['locale']}"

    app = App()
    app.localize(block, routes)
    app.add_middleware(routes.middleware())
    # GET /about -> "locale: en", GET /nl/about -> "locale: nl"

Templates (``pip install parrot[templates]``)::

    app = App(AppConfig(template_dir="templates"))
"""

__version__ = "0.1.0"
__all__ = [
    "AnyResponse",
    "App",
    "AppConfig",
    "AssignsMismatchError",
    "ConfigurationError",
    "Connection",
    "EventStream",
    "FlatScope",
    "Fragment",
    "HTTPError",
    "LocalizedRoutes",
    "MethodNotAllowed",
    "Middleware",
    "MissingLocaleAssignError",
    "MissingRootSlugError",
    "Nested",
    "Next",
    "NotFound",
    "ParrotError",
    "Redirect",
    "Request",
    "Response",
    "RouteBlock",
    "SSEEvent",
    "Template",
    "current_scope",
    "g",
    "get_request",
]

_ERRORS = (
    "AssignsMismatchError",
    "ConfigurationError",
    "HTTPError",
    "MethodNotAllowed",
    "MissingLocaleAssignError",
    "MissingRootSlugError",
    "NotFound",
    "ParrotError",
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import parrot`` fast while providing a clean top-level API.
    """
    if name == "App":
        from parrot.app import App

        return App

    if name == "AppConfig":
        from parrot.config import AppConfig

        return AppConfig

    if name == "LocalizedRoutes":
        from parrot.localized import LocalizedRoutes

        return LocalizedRoutes

    if name == "RouteBlock":
        from parrot.routing.localize import RouteBlock

        return RouteBlock

    if name in ("FlatScope", "Nested"):
        from parrot.scopes import model as _model

        return getattr(_model, name)

    if name == "Request":
        from parrot.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from parrot.http import response as _resp

        return getattr(_resp, name)

    if name in ("Template", "Fragment"):
        from parrot.templating import returns as _tmpl

        return getattr(_tmpl, name)

    if name in ("EventStream", "SSEEvent"):
        from parrot.realtime import events as _events

        return getattr(_events, name)

    if name == "Connection":
        from parrot.realtime.mount import Connection

        return Connection

    if name in ("AnyResponse", "Middleware", "Next"):
        from parrot.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("current_scope", "g", "get_request"):
        from parrot import context as _ctx

        return getattr(_ctx, name)

    if name in _ERRORS:
        from parrot import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
