"""
Application layer - Bootstrap and per-invocation orchestration.

This layer builds the module graph, resolves providers and runs invocations
through the pipeline. It depends only on the Domain layer.
"""

from .application import PluginApplication
from .builtin_pipes import (
    DefaultValuePipe,
    ParseBoolPipe,
    ParseFloatPipe,
    ParseIntPipe,
    TrimPipe,
    ValidationPipe,
)
from .circular_detector import CircularDependencyDetector
from .container import ModuleContainer
from .decorators import (
    catch,
    controller,
    delete,
    get,
    on_action,
    on_filter,
    param,
    patch,
    post,
    put,
    route,
    use_filters,
    use_guards,
    use_interceptors,
    use_pipes,
)
from .exception_filters import CoreExceptionFilter, ExceptionFiltersHandler
from .execution_context import ExecutionContext
from .guards import GuardsConsumer
from .hooks import HookRegistrar
from .interceptors import InterceptorsConsumer
from .lifetime_manager import LifetimeManager
from .middleware import MiddlewareConsumer, RouteMatcher
from .module_graph import ModuleGraphBuilder, ResolvedGraph, ResolvedModule
from .pipeline import PipelineRunner
from .pipes import ParamOptions, PipesConsumer
from .reflector import MetadataKeys, Reflector, default_reflector
from .resolver import ProviderResolver
from .validation import PydanticValidator

__all__ = [
    "PluginApplication",
    "ModuleContainer",
    "ModuleGraphBuilder",
    "ResolvedGraph",
    "ResolvedModule",
    "ProviderResolver",
    "LifetimeManager",
    "CircularDependencyDetector",
    "Reflector",
    "MetadataKeys",
    "default_reflector",
    "ExecutionContext",
    "PipelineRunner",
    "GuardsConsumer",
    "PipesConsumer",
    "ParamOptions",
    "InterceptorsConsumer",
    "ExceptionFiltersHandler",
    "CoreExceptionFilter",
    "MiddlewareConsumer",
    "RouteMatcher",
    "HookRegistrar",
    "PydanticValidator",
    # Pipes
    "TrimPipe",
    "ParseIntPipe",
    "ParseFloatPipe",
    "ParseBoolPipe",
    "DefaultValuePipe",
    "ValidationPipe",
    # Decorators
    "controller",
    "route",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "on_action",
    "on_filter",
    "use_guards",
    "use_interceptors",
    "use_pipes",
    "use_filters",
    "catch",
    "param",
]
