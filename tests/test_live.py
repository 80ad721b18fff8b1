"""Tests for live routes: mount hooks, ScopeMount, and scoped event streams."""

from typing import Any

import pytest

from parrot.app import App
from parrot.errors import MissingLocaleAssignError
from parrot.http.headers import Headers
from parrot.localized import LocalizedRoutes
from parrot.realtime.events import EventStream
from parrot.realtime.mount import Connection, ScopeMount, mount_scope
from parrot.routing.router import Router
from parrot.testing import TestClient


def _app(scope_mapping: dict[str, Any]) -> tuple[App, LocalizedRoutes]:
    routes = LocalizedRoutes(scopes=scope_mapping)
    block = routes.block()

    @block.route("/cart", name="cart")
    def cart() -> str:
        return "cart page"

    app = App()
    app.localize(block, routes)
    app.add_middleware(routes.middleware())
    app.on_mount(routes.on_mount())

    @app.route("/checkout", methods=["POST"])
    def checkout() -> str:
        return "ordered"

    @app.route("/live/cart", live=True)
    def live_cart(connection: Connection) -> EventStream:
        async def stream():
            yield connection.assigns["locale"]["name"]
            yield connection.path

        return EventStream(stream())

    return app, routes


class TestScopeMountUnit:
    @pytest.fixture
    def routes(self, scope_mapping: dict[str, Any]) -> LocalizedRoutes:
        return LocalizedRoutes(scopes=scope_mapping)

    @pytest.fixture
    def router(self, scope_mapping: dict[str, Any]) -> Router:
        app, _ = _app(scope_mapping)
        return app.router

    def test_mount_scope_resolves_page_path(self, routes: LocalizedRoutes, router: Router) -> None:
        resolution = mount_scope("/nl/cart", router, routes.config)
        assert resolution.scope is not None
        assert resolution.scope.flat_entry.key == "nl"

    def test_fills_connection_assigns(self, routes: LocalizedRoutes, router: Router) -> None:
        connection = Connection(path="/us/cart", headers=Headers())
        ScopeMount(routes.config)(connection, router)
        assert connection.assigns == {"locale": {"locale": "en", "name": "American"}}

    def test_unscoped_page_raises(self, routes: LocalizedRoutes, router: Router) -> None:
        connection = Connection(path="/live/cart", headers=Headers())
        with pytest.raises(MissingLocaleAssignError) as exc_info:
            ScopeMount(routes.config)(connection, router)
        assert exc_info.value.assign_key == "locale"

    def test_unknown_page_raises(self, routes: LocalizedRoutes, router: Router) -> None:
        connection = Connection(path="/de/cart", headers=Headers())
        with pytest.raises(MissingLocaleAssignError):
            ScopeMount(routes.config)(connection, router)

    def test_page_without_get_route_raises(
        self, routes: LocalizedRoutes, router: Router
    ) -> None:
        assert mount_scope("/checkout", router, routes.config).passthrough
        connection = Connection(path="/checkout", headers=Headers())
        with pytest.raises(MissingLocaleAssignError):
            ScopeMount(routes.config)(connection, router)

    def test_existing_assign_is_kept_for_unscoped_page(
        self, routes: LocalizedRoutes, router: Router
    ) -> None:
        connection = Connection(path="/live/cart", headers=Headers(), assigns={"locale": {"x": 1}})
        ScopeMount(routes.config)(connection, router)
        assert connection.assigns == {"locale": {"x": 1}}


class TestConnection:
    async def test_path_prefers_current_url(self, scope_mapping: dict[str, Any]) -> None:
        app, _ = _app(scope_mapping)
        async with TestClient(app) as client:
            result = await client.sse(
                "/live/cart",
                current_url="https://shop.example/gb/cart?step=2",
                max_events=2,
            )
        assert [e.data for e in result.events] == ["British", "/gb/cart"]


class TestLiveStream:
    async def test_scope_from_current_page(self, scope_mapping: dict[str, Any]) -> None:
        app, _ = _app(scope_mapping)
        async with TestClient(app) as client:
            result = await client.sse("/live/cart", current_url="/nl/cart", max_events=2)
        assert result.status == 200
        assert result.events[0].data == "Nederlands"

    async def test_root_scope_page(self, scope_mapping: dict[str, Any]) -> None:
        app, _ = _app(scope_mapping)
        async with TestClient(app) as client:
            result = await client.sse("/live/cart", current_url="/cart", max_events=2)
        assert result.events[0].data == "English"

    async def test_without_scope_is_500(self, scope_mapping: dict[str, Any]) -> None:
        app, _ = _app(scope_mapping)
        async with TestClient(app) as client:
            result = await client.sse("/live/cart", max_events=1)
        assert result.status == 500
        assert result.events == ()

    async def test_mount_error_reaches_error_handler(self, scope_mapping: dict[str, Any]) -> None:
        app, _ = _app(scope_mapping)
        seen: list[Exception] = []

        @app.error(MissingLocaleAssignError)
        def missing(request, exc):
            seen.append(exc)
            return "pick a locale", 500

        async with TestClient(app) as client:
            result = await client.sse("/live/cart", max_events=1)
        assert result.status == 500
        assert "pick a locale" in result.body
        assert isinstance(seen[0], MissingLocaleAssignError)

    async def test_hooks_run_in_order_before_handler(self) -> None:
        calls: list[str] = []
        app = App()

        def first(connection: Connection, router: Router) -> None:
            calls.append("first")
            connection.assigns["user"] = "ada"

        async def second(connection: Connection, router: Router) -> None:
            calls.append(f"second:{connection.assigns['user']}")

        app.on_mount(first)
        app.on_mount(second)

        @app.route("/live", live=True)
        def live(connection: Connection) -> str:
            calls.append("handler")
            return connection.assigns["user"]

        async with TestClient(app) as client:
            response = await client.get("/live")
        assert response.text == "ada"
        assert calls == ["first", "second:ada", "handler"]

    async def test_hooks_skip_plain_routes(self) -> None:
        app = App()

        def boom(connection: Connection, router: Router) -> None:
            raise AssertionError("should not run")

        app.on_mount(boom)

        @app.route("/plain")
        def plain() -> str:
            return "plain"

        async with TestClient(app) as client:
            response = await client.get("/plain")
        assert response.status == 200
