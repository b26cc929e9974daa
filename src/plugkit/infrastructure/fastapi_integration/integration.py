import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool
from starlette.responses import HTMLResponse, JSONResponse, Response

from plugkit.application import PluginApplication
from plugkit.domain import BODY_KEY, REQUEST_KEY, ErrorResponse, ResponseKind, RouteDefinition

logger = logging.getLogger(__name__)


async def build_raw_arguments(request: Request) -> Dict[str, Any]:
    """Collect the raw handler arguments of a request.

    Query parameters come first, then path parameters, then the fields of a
    JSON object body, each overriding the previous on name clashes. The whole
    body is available under ``BODY_KEY`` and the request under ``REQUEST_KEY``.

    Raises:
        ValueError: If the body is not valid JSON.
    """
    raw_args: Dict[str, Any] = dict(request.query_params)
    raw_args.update(request.path_params)

    body: Any = None
    payload = await request.body()
    if payload:
        body = json.loads(payload)
        if isinstance(body, dict):
            raw_args.update(body)

    raw_args[BODY_KEY] = body
    raw_args[REQUEST_KEY] = request
    return raw_args


def to_response(result: Any) -> Response:
    """Serialize a pipeline result into a Starlette response.

    Args:
        result: Handler result, middleware response or ``ErrorResponse``.

    Returns:
        ``Response`` objects as-is, error responses with their status code,
        anything else as JSON.
    """
    if isinstance(result, Response):
        return result
    if isinstance(result, ErrorResponse):
        if result.kind == ResponseKind.ERROR_PAGE and result.html is not None:
            return HTMLResponse(result.html, status_code=result.status_code)
        return JSONResponse(result.to_payload(), status_code=result.status_code)
    if result is None:
        return Response(status_code=204)
    return JSONResponse(jsonable_encoder(result))


def create_endpoint(
    plugin: PluginApplication, route: RouteDefinition, prefix: str = ""
) -> Callable[[Request], Awaitable[Response]]:
    """Create the Starlette endpoint running one controller route.

    Middleware rules are matched against the request path without ``prefix``.

    Example:
        >>> endpoint = create_endpoint(plugin, plugin.get_routes()[0])
        >>> app.add_api_route("/posts", endpoint, methods=["GET"])
    """

    async def endpoint(request: Request) -> Response:
        try:
            raw_args = await build_raw_arguments(request)
        except ValueError:
            return to_response(ErrorResponse(kind=ResponseKind.HTTP, message="Malformed JSON body", status_code=400))
        path = request.url.path
        if prefix and path.startswith(prefix):
            path = path[len(prefix) :] or "/"
        result = await run_in_threadpool(plugin.handle_request, route, request, raw_args, path=path)
        return to_response(result)

    endpoint.__name__ = f"{route.controller_type.__name__}_{route.method_name}"
    return endpoint


def mount(app: FastAPI, plugin: PluginApplication, prefix: str = "", name: Optional[str] = None) -> int:
    """Register every controller route of a plugin on a FastAPI application.

    Args:
        app: The FastAPI application.
        plugin: The bootstrapped plugin.
        prefix: Path prefix for every route, e.g. ``/wp-json/my-plugin/v1``.
        name: Optional prefix for route names.

    Returns:
        Number of routes registered.

    Example:
        >>> app = FastAPI()
        >>> plugin = PluginApplication.create(AppModule)
        >>> mount(app, plugin, prefix="/api")
    """
    count = 0
    base = "/" + prefix.strip("/") if prefix.strip("/") else ""
    for route in plugin.get_routes():
        path = base + route.path if route.path != "/" or not base else base
        app.add_api_route(
            path,
            create_endpoint(plugin, route, base),
            methods=[route.http_method],
            name=f"{name}.{route.method_name}" if name else None,
            include_in_schema=False,
        )
        logger.debug(
            "Mounted %s %s -> %s.%s", route.http_method, path, route.controller_type.__name__, route.method_name
        )
        count += 1
    return count
