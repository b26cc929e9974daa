"""Application layer - Plugin bootstrap and invocation entry points."""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple, Type

from plugkit.application.container import ModuleContainer
from plugkit.application.execution_context import ExecutionContext
from plugkit.application.hooks import HookRegistrar
from plugkit.application.middleware import MiddlewareConsumer
from plugkit.application.module_graph import ModuleGraphBuilder, ResolvedGraph
from plugkit.application.pipeline import PipelineRunner
from plugkit.application.reflector import MetadataKeys, Reflector, default_reflector
from plugkit.application.resolver import ProviderResolver
from plugkit.domain import (
    ErrorResponse,
    HookContext,
    ModuleNode,
    PluginSettings,
    ProviderDefinition,
    RestContext,
    RouteDefinition,
    Token,
)

logger = logging.getLogger(__name__)


def _join_paths(*parts: str) -> str:
    segments = [part.strip("/") for part in parts if part and part.strip("/")]
    return "/" + "/".join(segments)


class PluginApplication:
    """A bootstrapped plugin: module graph, container and pipeline.

    Acts as the registrar driving the core: HTTP invocations go through
    ``handle_request`` (middleware, then pipeline) and hook-bound controller
    methods are registered on the hook registrar, each dispatch pushing its
    hook context around the pipeline run.

    The execution context of the invocation in progress is kept per thread, so
    hooks fired from inside a handler push onto the same context (nested hooks,
    or hooks fired while a REST request is being handled).

    Attributes:
        graph: The resolved module graph.
        container: The module-aware container.
        reflector: The metadata registry.
        settings: Plugin settings.
        hooks: The hook registrar controller hooks are bound to.
        runner: The pipeline runner.
    """

    def __init__(
        self,
        graph: ResolvedGraph,
        settings: PluginSettings,
        reflector: Reflector,
        hooks: Optional[HookRegistrar] = None,
    ) -> None:
        self.graph = graph
        self.settings = settings
        self.reflector = reflector
        self.hooks = hooks or HookRegistrar()
        self.container = ModuleContainer(graph)
        self.runner = PipelineRunner(self.container, reflector, settings, graph.enhancers)
        self.middleware = MiddlewareConsumer(self.container, graph.enhancers.middlewares)
        self._local = threading.local()
        self._bind_hooks()

    @classmethod
    def create(
        cls,
        root: Any,
        settings: Optional[PluginSettings] = None,
        reflector: Optional[Reflector] = None,
        hooks: Optional[HookRegistrar] = None,
    ) -> "PluginApplication":
        """Build the module graph and bootstrap the plugin.

        Args:
            root: Root module, static or dynamic.
            settings: Plugin settings. Read from the environment when omitted.
            reflector: Metadata registry. The shared default when omitted.
            hooks: Hook registrar to bind controller hooks to.

        Returns:
            The bootstrapped application.

        Raises:
            ModuleResolutionError: If the module graph is invalid. Nothing is
                registered in that case.

        Example:
            >>> app = PluginApplication.create(AppModule, settings=PluginSettings(debug=True))
            >>> app.hooks.do_action("init")
        """
        settings = settings or PluginSettings()
        reflector = reflector or default_reflector
        graph = cls.build_graph(root, settings, reflector)
        return cls(graph, settings, reflector, hooks)

    @staticmethod
    def build_graph(root: Any, settings: PluginSettings, reflector: Reflector) -> ResolvedGraph:
        """Build the graph with the core module providing settings and reflector."""
        core = ModuleNode(
            name="PlugkitCoreModule",
            providers=[
                ProviderDefinition.for_value(PluginSettings, settings),
                ProviderDefinition.for_value(Reflector, reflector),
            ],
            exports=[PluginSettings, Reflector],
            is_global=True,
        )
        builder = ModuleGraphBuilder(ProviderResolver(), composition=settings.global_composition)
        return builder.build(root, core_modules=[core])

    def get(self, token: Token, module: Optional[str] = None) -> Any:
        """Resolve a token, from the root module by default."""
        return self.container.resolve(token, module)

    def current_context(self) -> Optional[ExecutionContext]:
        """Execution context of the invocation in progress on this thread."""
        return getattr(self._local, "context", None)

    @contextmanager
    def _activated(self, context: ExecutionContext) -> Iterator[ExecutionContext]:
        previous = self.current_context()
        self._local.context = context
        try:
            yield context
        finally:
            self._local.context = previous

    def get_routes(self) -> List[RouteDefinition]:
        """HTTP routes declared by controllers, in module discovery order."""
        routes = []
        for controller_type, module in self.container.get_controllers():
            prefixes = self.reflector.get_type_args(controller_type, MetadataKeys.CONTROLLER)
            prefix = prefixes[-1] if prefixes else ""
            for method_name in self.reflector.get_annotated_methods(controller_type, MetadataKeys.ROUTE):
                for entry in self.reflector.get_method_metadata(controller_type, method_name, MetadataKeys.ROUTE):
                    http_method, path = entry.args
                    routes.append(
                        RouteDefinition(
                            controller_type=controller_type,
                            method_name=method_name,
                            http_method=http_method,
                            path=_join_paths(prefix, path),
                            module=module,
                        )
                    )
        return routes

    def handle_request(
        self,
        route: RouteDefinition,
        request: Any,
        raw_args: Any,
        path: Optional[str] = None,
        response: Any = None,
    ) -> Any:
        """Run an HTTP invocation: middleware stage, then the pipeline.

        Args:
            route: The matched route.
            request: Transport request object, handed to middleware and exposed
                through the REST context.
            raw_args: Raw values by key for the handler parameters.
            path: Concrete request path used for middleware matching. Defaults
                to the route path.
            response: Optional transport response object for the REST context.

        Returns:
            A middleware response, the handler result, or an ``ErrorResponse``.

        Raises:
            UnresolvableDependencyError: If the controller cannot be resolved.
            CircularDependencyError: If the controller's dependencies are circular.
            ProviderConstructionError: If the controller's construction fails.
        """
        request_path = path or route.path
        try:
            request, middleware_response = self.middleware.apply(request, request_path, route.http_method)
        except Exception as error:
            rest_context = RestContext(
                request=request, response=response, path=request_path, http_method=route.http_method
            )
            return self.runner.handle_error(error, ExecutionContext(rest_context=rest_context))
        if middleware_response is not None:
            return middleware_response

        instance = self.container.resolve(route.controller_type, route.module)
        rest_context = RestContext(
            request=request,
            response=response,
            controller_type=route.controller_type,
            method_name=route.method_name,
            path=request_path,
            http_method=route.http_method,
        )
        with self._activated(ExecutionContext(rest_context=rest_context)) as context:
            return self.runner.run(instance, route.method_name, raw_args, context, module=route.module)

    def handle_hook(
        self,
        controller_type: Type,
        method_name: str,
        hook_name: str,
        args: Tuple[Any, ...],
        is_filter_hook: bool = False,
        module: Optional[str] = None,
        expects_json: bool = False,
    ) -> Any:
        """Run a hook-bound controller method through the pipeline.

        The hook context is pushed on the current execution context (created
        when no invocation is in progress) and popped when the run ends, even
        if it raises.

        Returns:
            The handler result. For filter hooks whose run produced an error
            response, the unfiltered value instead.
        """
        module_key = module or self.container.get_controller_module(controller_type)
        instance = self.container.resolve(controller_type, module_key)
        hook_context = HookContext(
            hook_name=hook_name,
            args=tuple(args),
            controller_type=controller_type,
            method_name=method_name,
            is_filter_hook=is_filter_hook,
        )
        context = self.current_context() or ExecutionContext(expects_json=expects_json)
        with self._activated(context), context.hook_scope(hook_context):
            result = self.runner.run(instance, method_name, list(args), context, module=module_key)

        if is_filter_hook and isinstance(result, ErrorResponse):
            logger.warning("Filter %s on %s failed: %s", method_name, hook_name, result.message)
            return args[0] if args else None
        return result

    def _bind_hooks(self) -> None:
        for controller_type, module in self.container.get_controllers():
            for method_name in self.reflector.get_annotated_methods(controller_type, MetadataKeys.HOOK):
                for entry in self.reflector.get_method_metadata(controller_type, method_name, MetadataKeys.HOOK):
                    hook_name, priority, is_filter_hook = entry.args
                    callback = self._hook_callback(controller_type, method_name, hook_name, is_filter_hook, module)
                    if is_filter_hook:
                        self.hooks.add_filter(hook_name, callback, priority)
                    else:
                        self.hooks.add_action(hook_name, callback, priority)
                    logger.debug("Bound %s.%s to hook %s", controller_type.__name__, method_name, hook_name)

    def _hook_callback(
        self,
        controller_type: Type,
        method_name: str,
        hook_name: str,
        is_filter_hook: bool,
        module: str,
    ) -> Any:
        def callback(*args: Any) -> Any:
            return self.handle_hook(controller_type, method_name, hook_name, args, is_filter_hook, module)

        return callback
