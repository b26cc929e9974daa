"""Unit tests for FastAPI integration."""

import asyncio

import pytest

pytest.importorskip("fastapi")

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from starlette.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response  # noqa: E402

from plugkit.application import PluginApplication, Reflector, controller, get, post  # noqa: E402
from plugkit.domain import BODY_KEY, ErrorResponse, ModuleNode, PluginSettings, ResponseKind  # noqa: E402
from plugkit.infrastructure.fastapi_integration import build_raw_arguments, mount, to_response  # noqa: E402


def _plugin():
    reflector = Reflector()

    @controller("/posts", reflector=reflector)
    class PostsController:
        @get("/empty", reflector=reflector)
        def empty(self):
            return None

        @get("/{post_id}", reflector=reflector)
        def find_one(self, post_id: int, verbose: bool = False):
            return {"id": post_id, "verbose": verbose}

        @post(reflector=reflector)
        def create(self, title: str):
            return {"title": title}

    return PluginApplication.create(
        ModuleNode(name="AppModule", controllers=[PostsController]),
        settings=PluginSettings(debug=False),
        reflector=reflector,
    )


class TestToResponse:
    """Test cases for to_response."""

    def test_response_passes_through(self):
        """Test that Starlette responses are returned as-is."""
        response = PlainTextResponse("hi")
        assert to_response(response) is response

    def test_error_response_is_json_with_status(self):
        """Test that HTTP error responses become JSON with their status code."""
        response = to_response(ErrorResponse(kind=ResponseKind.HTTP, message="Not found", status_code=404))

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404

    def test_error_page_is_html(self):
        """Test that error pages become HTML responses."""
        response = to_response(
            ErrorResponse(kind=ResponseKind.ERROR_PAGE, message="Oops", status_code=500, html="<p>Oops</p>")
        )

        assert isinstance(response, HTMLResponse)
        assert response.status_code == 500

    def test_none_is_no_content(self):
        """Test that None becomes 204."""
        response = to_response(None)

        assert isinstance(response, Response)
        assert response.status_code == 204

    def test_values_are_json(self):
        """Test that plain values are encoded as JSON."""
        response = to_response({"id": 1})

        assert isinstance(response, JSONResponse)
        assert response.body == b'{"id":1}'


class TestMount:
    """Test cases for mount."""

    def test_mount_registers_routes(self):
        """Test that every controller route is registered."""
        app = FastAPI()

        count = mount(app, _plugin(), prefix="/api/")

        paths = {route.path for route in app.routes}
        assert count == 3
        assert {"/api/posts/{post_id}", "/api/posts", "/api/posts/empty"} <= paths

    def test_path_and_query_arguments(self):
        """Test that path and query values reach the handler, coerced."""
        app = FastAPI()
        mount(app, _plugin())
        client = TestClient(app)

        response = client.get("/posts/5", params={"verbose": "true"})

        assert response.status_code == 200
        assert response.json() == {"id": 5, "verbose": True}

    def test_json_body_fields(self):
        """Test that JSON body fields are bound by name."""
        app = FastAPI()
        mount(app, _plugin())
        client = TestClient(app)

        response = client.post("/posts", json={"title": "Hello"})

        assert response.json() == {"title": "Hello"}

    def test_validation_error_is_422(self):
        """Test that invalid arguments produce a 422 payload."""
        app = FastAPI()
        mount(app, _plugin())
        client = TestClient(app)

        response = client.get("/posts/abc")

        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "Validation failed"
        assert "post_id" in body["errors"]

    def test_malformed_json_is_400(self):
        """Test that an unparsable body is rejected."""
        app = FastAPI()
        mount(app, _plugin())
        client = TestClient(app)

        response = client.post("/posts", content=b"{not json", headers={"content-type": "application/json"})

        assert response.status_code == 400

    def test_none_result_is_204(self):
        """Test that handlers returning None answer with no content."""
        app = FastAPI()
        mount(app, _plugin())
        client = TestClient(app)

        assert client.get("/posts/empty").status_code == 204

    def test_handlers_run_off_the_event_loop(self):
        """Test that sync controller methods run in the threadpool."""
        reflector = Reflector()

        @controller("/status", reflector=reflector)
        class StatusController:
            @get(reflector=reflector)
            def show(self):
                try:
                    asyncio.get_running_loop()
                except RuntimeError:
                    return {"on_event_loop": False}
                return {"on_event_loop": True}

        plugin = PluginApplication.create(
            ModuleNode(name="StatusModule", controllers=[StatusController]), reflector=reflector
        )
        app = FastAPI()
        mount(app, plugin)

        response = TestClient(app).get("/status")

        assert response.json() == {"on_event_loop": False}


class TestBuildRawArguments:
    """Test cases for build_raw_arguments."""

    def test_body_key_holds_whole_body(self):
        """Test that the whole body is available under BODY_KEY."""
        captured = {}
        app = FastAPI()

        @app.post("/echo")
        async def echo(request: Request):
            captured.update(await build_raw_arguments(request))
            return {}

        TestClient(app).post("/echo?page=2", json=[1, 2])

        assert captured[BODY_KEY] == [1, 2]
        assert captured["page"] == "2"
