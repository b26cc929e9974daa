"""Integration tests for a plugin mounted on FastAPI."""

import pytest

pytest.importorskip("fastapi")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from pydantic import BaseModel, Field  # noqa: E402
from starlette.requests import Request  # noqa: E402
from starlette.responses import JSONResponse  # noqa: E402

from plugkit import (  # noqa: E402
    BODY_KEY,
    IGuard,
    IMiddleware,
    MiddlewareBinding,
    ModuleNode,
    NotFoundError,
    RouteRule,
    ValidationPipe,
    controller,
    get,
    param,
    post,
    use_guards,
)
from plugkit.application import Reflector  # noqa: E402
from plugkit.infrastructure.fastapi_integration import mount  # noqa: E402
from plugkit.infrastructure.testing import TestingModule  # noqa: E402


class CreatePost(BaseModel):
    title: str = Field(min_length=3)


class PostRepository:
    def __init__(self):
        self.posts = {1: {"id": 1, "title": "First"}}

    def find(self, post_id):
        if post_id not in self.posts:
            raise NotFoundError(f"Post {post_id} not found")
        return self.posts[post_id]

    def add(self, title):
        post_id = max(self.posts) + 1
        self.posts[post_id] = {"id": post_id, "title": title}
        return self.posts[post_id]


class ApiKeyGuard(IGuard):
    def can_activate(self, context):
        request = context.switch_to_rest_context().request
        return request.headers.get("x-api-key") == "secret"


class MaintenanceMiddleware(IMiddleware):
    def use(self, request: Request):
        if request.headers.get("x-maintenance"):
            return JSONResponse({"message": "Down for maintenance"}, status_code=503)
        return request


def _root(reflector):
    @controller("/posts", reflector=reflector)
    class PostsController:
        def __init__(self, repo: PostRepository):
            self.repo = repo

        @get("/{post_id}", reflector=reflector)
        def find_one(self, post_id: int):
            return self.repo.find(post_id)

        @post(reflector=reflector)
        @use_guards(ApiKeyGuard, reflector=reflector)
        @param("payload", ValidationPipe(CreatePost), key=BODY_KEY, reflector=reflector)
        def create(self, payload: CreatePost):
            return self.repo.add(payload.title)

    data = ModuleNode(name="DataModule", providers=[PostRepository], exports=[PostRepository])
    posts = ModuleNode(name="PostsModule", imports=[data], controllers=[PostsController])
    return ModuleNode(
        name="AppModule",
        imports=[posts],
        middlewares=[MiddlewareBinding(middleware=MaintenanceMiddleware, routes=(RouteRule(path="/posts/*"),))],
    )


@pytest.fixture
def client():
    reflector = Reflector()
    plugin = TestingModule(_root(reflector), reflector=reflector).compile()
    app = FastAPI()
    mount(app, plugin, prefix="/wp-json/blog/v1")
    return TestClient(app)


class TestMountedPlugin:
    """Test HTTP invocations through the mounted plugin."""

    def test_get_post(self, client):
        """Test a successful read."""
        response = client.get("/wp-json/blog/v1/posts/1")

        assert response.status_code == 200
        assert response.json() == {"id": 1, "title": "First"}

    def test_http_exception_from_handler(self, client):
        """Test that handler HTTP errors keep their status."""
        response = client.get("/wp-json/blog/v1/posts/99")

        assert response.status_code == 404
        assert response.json()["message"] == "Post 99 not found"

    def test_debug_fields_in_testing_mode(self, client):
        """Test that testing applications include debug details."""
        body = client.get("/wp-json/blog/v1/posts/99").json()

        assert body["filter_name"] == "CoreExceptionFilter"
        assert "NotFoundError" in body["stack_trace"]

    def test_guard_rejects_without_key(self, client):
        """Test that the guard answers 401 without the API key."""
        response = client.post("/wp-json/blog/v1/posts", json={"title": "Hello"})

        assert response.status_code == 401

    def test_create_with_key(self, client):
        """Test a guarded, validated write."""
        response = client.post("/wp-json/blog/v1/posts", json={"title": "Hello"}, headers={"x-api-key": "secret"})

        assert response.status_code == 200
        assert response.json() == {"id": 2, "title": "Hello"}

    def test_invalid_body_is_422(self, client):
        """Test that validation errors name the failing field."""
        response = client.post("/wp-json/blog/v1/posts", json={"title": "x"}, headers={"x-api-key": "secret"})

        assert response.status_code == 422
        assert "title" in response.json()["errors"]

    def test_middleware_short_circuits(self, client):
        """Test that middleware can answer before the pipeline runs."""
        response = client.get("/wp-json/blog/v1/posts/1", headers={"x-maintenance": "1"})

        assert response.status_code == 503
        assert response.json() == {"message": "Down for maintenance"}

    def test_middleware_route_rules(self, client):
        """Test that middleware only applies to matching paths."""
        response = client.post(
            "/wp-json/blog/v1/posts",
            json={"title": "Hello"},
            headers={"x-api-key": "secret", "x-maintenance": "1"},
        )

        assert response.status_code == 200
