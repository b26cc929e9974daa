"""Application layer - Per-invocation pipeline."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from plugkit.application.container import ModuleContainer
from plugkit.application.exception_filters import CoreExceptionFilter, ExceptionFiltersHandler
from plugkit.application.execution_context import ExecutionContext
from plugkit.application.guards import GuardsConsumer
from plugkit.application.interceptors import InterceptorsConsumer
from plugkit.application.pipes import ParamOptions, PipesConsumer
from plugkit.application.reflector import MetadataKeys, Reflector
from plugkit.domain import EnhancerBinding, GlobalEnhancers, IExceptionFilter, PluginSettings

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Runs a controller method through guards, pipes, interceptors and filters.

    Order per invocation: guards, then pipes on every argument, then the
    interceptor chain around the handler call. Any error raised along the way
    goes to the exception filters, whose last member never raises, so ``run``
    always returns either the handler result or an error response.

    Enhancers are read at three levels: plugin-global (declared by modules),
    class (metadata on the controller) and method (metadata on the handler).
    Declarations given as classes are resolved through the container, from the
    module that declares the controller.

    Attributes:
        _container: Container used to resolve enhancer classes.
        _reflector: Metadata source for class and method enhancers.
        _enhancers: Plugin-global enhancers.
    """

    def __init__(
        self,
        container: ModuleContainer,
        reflector: Reflector,
        settings: PluginSettings,
        enhancers: Optional[GlobalEnhancers] = None,
        fallback_filter: Optional[IExceptionFilter] = None,
    ) -> None:
        self._container = container
        self._reflector = reflector
        self._enhancers = enhancers or GlobalEnhancers()
        self._guards = GuardsConsumer()
        self._pipes = PipesConsumer(coerce=settings.coerce_parameters)
        self._interceptors = InterceptorsConsumer()
        self._filters = ExceptionFiltersHandler(reflector, fallback_filter or CoreExceptionFilter(settings))

    def run(
        self,
        instance: Any,
        method_name: str,
        raw_args: Any,
        context: ExecutionContext,
        module: Optional[str] = None,
    ) -> Any:
        """Invoke a controller method through the pipeline.

        Args:
            instance: The controller instance.
            method_name: Name of the handler method.
            raw_args: Mapping of raw values by key, or a sequence of positional values.
            context: The invocation's execution context.
            module: Key of the declaring module. Looked up from the controller when omitted.

        Returns:
            The handler result (possibly transformed by interceptors), or the
            response produced by the exception filters.

        Example:
            >>> context = ExecutionContext(rest_context=RestContext(request=request))
            >>> runner.run(posts_controller, "create", {"$body": payload}, context)
        """
        controller_type = type(instance)
        module_key = module or self._container.get_controller_module(controller_type)
        filters: List[IExceptionFilter] = []
        try:
            filters = self._collect(
                MetadataKeys.FILTERS, controller_type, method_name, module_key, most_specific_first=True
            )
            guards = self._collect(MetadataKeys.GUARDS, controller_type, method_name, module_key)
            self._guards.can_activate(guards, context)

            handler = getattr(instance, method_name)
            pipes = self._collect(MetadataKeys.PIPES, controller_type, method_name, module_key)
            args, kwargs = self._pipes.transform_arguments(
                handler, raw_args, pipes, self._param_options(controller_type, method_name, module_key)
            )

            interceptors = self._collect(MetadataKeys.INTERCEPTORS, controller_type, method_name, module_key)
            return self._interceptors.intercept(interceptors, context, lambda: handler(*args, **kwargs))
        except Exception as error:
            logger.debug("%s.%s raised %s", controller_type.__name__, method_name, type(error).__name__)
            return self._filters.handle(error, filters, context)

    def handle_error(self, error: Exception, context: ExecutionContext) -> Any:
        """Run an error raised outside a handler invocation through the global filters."""
        filters = [
            self._container.get_enhancer(binding.enhancer, binding.module) for binding in self._enhancers.filters
        ]
        return self._filters.handle(error, filters, context)

    def _collect(
        self,
        marker: str,
        controller_type: type,
        method_name: str,
        module_key: str,
        most_specific_first: bool = False,
    ) -> List[Any]:
        declarations: List[List[EnhancerBinding]] = [
            list(self._global_bindings(marker)),
            [
                EnhancerBinding(enhancer=enhancer, module=module_key)
                for enhancer in self._reflector.get_type_args(controller_type, marker)
            ],
            [
                EnhancerBinding(enhancer=enhancer, module=module_key)
                for enhancer in self._reflector.get_method_args(controller_type, method_name, marker)
            ],
        ]
        if most_specific_first:
            declarations.reverse()
        return [
            self._container.get_enhancer(binding.enhancer, binding.module)
            for level in declarations
            for binding in level
        ]

    def _global_bindings(self, marker: str) -> Sequence[EnhancerBinding]:
        if marker == MetadataKeys.GUARDS:
            return self._enhancers.guards
        if marker == MetadataKeys.INTERCEPTORS:
            return self._enhancers.interceptors
        if marker == MetadataKeys.PIPES:
            return self._enhancers.pipes
        if marker == MetadataKeys.FILTERS:
            return self._enhancers.filters
        return []

    def _param_options(self, controller_type: type, method_name: str, module_key: str) -> Dict[str, ParamOptions]:
        options: Dict[str, ParamOptions] = {}
        for entry in self._reflector.get_method_metadata(controller_type, method_name, MetadataKeys.PARAM):
            name, pipes, key, coerce = entry.args
            options[name] = ParamOptions(
                pipes=[self._container.get_enhancer(pipe, module_key) for pipe in pipes],
                key=key,
                coerce=coerce,
            )
        return options
