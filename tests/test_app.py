"""Tests for App: registration, freezing, lifespan, and the request pipeline."""

from typing import Any

import pytest

from parrot.app import App
from parrot.errors import ConfigurationError, NotFound
from parrot.http.request import Request
from parrot.http.response import Response
from parrot.localized import LocalizedRoutes
from parrot.testing import TestClient


async def _lifespan(app: App) -> list[dict[str, Any]]:
    messages = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
    sent: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return next(messages)

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    await app({"type": "lifespan"}, receive, send)
    return sent


class TestLifespan:
    async def test_startup_and_shutdown(self) -> None:
        app = App()
        calls: list[str] = []

        @app.on_startup
        async def start() -> None:
            calls.append("start")

        @app.on_shutdown
        def stop() -> None:
            calls.append("stop")

        sent = await _lifespan(app)
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert calls == ["start", "stop"]

    async def test_bad_route_fails_startup(self) -> None:
        app = App()

        @app.route("/users/<id>")
        def user() -> str:
            return "user"

        sent = await _lifespan(app)
        assert sent[0]["type"] == "lifespan.startup.failed"
        assert "{param}" in sent[0]["message"]

    async def test_failing_hook_fails_startup(self) -> None:
        app = App()

        @app.on_startup
        def start() -> None:
            raise RuntimeError("database unavailable")

        sent = await _lifespan(app)
        assert sent == [{"type": "lifespan.startup.failed", "message": "database unavailable"}]


class TestRegistration:
    def test_frozen_app_rejects_routes(self) -> None:
        app = App()
        app._ensure_frozen()
        with pytest.raises(RuntimeError, match="Cannot modify"):
            app.route("/late")(lambda: "late")

    def test_frozen_app_rejects_middleware(self) -> None:
        app = App()
        assert len(app.router.routes) == 0
        with pytest.raises(RuntimeError):
            app.add_middleware(lambda request, next: next(request))

    def test_one_scope_config_per_app(self, scope_mapping: dict[str, Any]) -> None:
        app = App()
        first = LocalizedRoutes(scopes=scope_mapping)
        second = LocalizedRoutes(scopes=scope_mapping)
        app.localize(first.block(), first)
        app.localize(first.block(), first.config)
        with pytest.raises(ConfigurationError, match="one scope configuration"):
            app.localize(second.block(), second)

    def test_scope_config_property(self, scope_mapping: dict[str, Any]) -> None:
        app = App()
        assert app.scope_config is None
        routes = LocalizedRoutes(scopes=scope_mapping)
        app.localize(routes.block(), routes)
        assert app.scope_config is routes.config

    def test_plain_and_localized_routes_keep_order(self, scope_mapping: dict[str, Any]) -> None:
        routes = LocalizedRoutes(scopes=scope_mapping)
        block = routes.block()
        block.add("/page", lambda: "page")

        app = App()

        @app.route("/first")
        def first() -> str:
            return "first"

        app.localize(block, routes)

        @app.route("/last")
        def last() -> str:
            return "last"

        assert [r.path for r in app.router.routes] == [
            "/first",
            "/page",
            "/gb/page",
            "/us/page",
            "/nl/page",
            "/last",
        ]

    def test_url_for_unknown_scope(self, scope_mapping: dict[str, Any]) -> None:
        routes = LocalizedRoutes(scopes=scope_mapping)
        block = routes.block()
        block.add("/page", lambda: "page", name="page")
        app = App()
        app.localize(block, routes)
        assert app.url_for("page", scope="gb") == "/gb/page"
        with pytest.raises(LookupError, match="Unknown scope"):
            app.url_for("page", scope="fr")

    def test_url_for_scope_without_config(self) -> None:
        app = App()
        with pytest.raises(LookupError, match="no localized routes"):
            app.url_for("page", scope="gb")


class TestPipeline:
    async def test_not_found(self) -> None:
        async with TestClient(App()) as client:
            response = await client.get("/missing")
        assert response.status == 404

    async def test_method_not_allowed(self) -> None:
        app = App()

        @app.route("/items", methods=["GET", "POST"])
        def items() -> str:
            return "items"

        async with TestClient(app) as client:
            response = await client.request("DELETE", "/items")
        assert response.status == 405
        assert response.header("allow") == "GET, POST"

    async def test_head_falls_back_to_get(self) -> None:
        app = App()

        @app.route("/items")
        def items() -> str:
            return "items"

        async with TestClient(app) as client:
            response = await client.request("HEAD", "/items")
        assert response.status == 200
        assert response.text == ""

    async def test_path_params_are_converted(self) -> None:
        app = App()

        @app.route("/items/{id:int}")
        def item(id: int) -> dict[str, Any]:
            return {"id": id, "type": type(id).__name__}

        async with TestClient(app) as client:
            response = await client.get("/items/42")
        assert response.text == '{"id": 42, "type": "int"}'

    async def test_async_handler(self) -> None:
        app = App()

        @app.route("/async")
        async def handler(request: Request) -> str:
            return request.method

        async with TestClient(app) as client:
            response = await client.get("/async")
        assert response.text == "GET"

    async def test_status_error_handler(self) -> None:
        app = App()

        @app.error(404)
        def not_found(request: Request) -> str:
            return f"nothing at {request.path}"

        async with TestClient(app) as client:
            response = await client.get("/nope")
        assert response.status == 404
        assert response.text == "nothing at /nope"

    async def test_raised_http_error(self) -> None:
        app = App()

        @app.route("/gone")
        def gone() -> str:
            raise NotFound("gone for good")

        async with TestClient(app) as client:
            response = await client.get("/gone")
        assert response.status == 404
        assert response.text == "gone for good"

    async def test_internal_error(self) -> None:
        app = App()

        @app.route("/boom")
        def boom() -> str:
            raise ValueError("boom")

        async with TestClient(app) as client:
            response = await client.get("/boom")
        assert response.status == 500
        assert response.text == "Internal Server Error"

    async def test_debug_internal_error_shows_traceback(self) -> None:
        from parrot.config import AppConfig

        app = App(AppConfig(debug=True))

        @app.route("/boom")
        def boom() -> str:
            raise ValueError("kaboom")

        async with TestClient(app) as client:
            response = await client.get("/boom")
        assert response.status == 500
        assert "ValueError: kaboom" in response.text

    async def test_fragment_error_headers(self) -> None:
        async with TestClient(App()) as client:
            response = await client.fragment("/missing")
        assert response.status == 404
        assert response.header("hx-retarget") == "#parrot-error"
        assert 'data-status="404"' in response.text

    async def test_middleware_wraps_in_order(self) -> None:
        app = App()
        trail: list[str] = []

        def named(label: str):
            async def middleware(request: Request, next):
                trail.append(f"{label}:in")
                response = await next(request)
                trail.append(f"{label}:out")
                return response

            return middleware

        app.add_middleware(named("outer"))
        app.add_middleware(named("inner"))

        @app.route("/")
        def index() -> Response:
            trail.append("handler")
            return Response(body="ok")

        async with TestClient(app) as client:
            await client.get("/")
        assert trail == ["outer:in", "inner:in", "handler", "inner:out", "outer:out"]
