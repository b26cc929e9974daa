"""
plugkit: Request-processing runtime for modular plugins.

Module-graph aware dependency injection plus a guard, pipe, interceptor and
exception-filter pipeline shared by HTTP requests and nested hook dispatch.

Public API exports for the plugkit package.
"""

# Application exports
from plugkit.application import (
    DefaultValuePipe,
    ExecutionContext,
    HookRegistrar,
    ModuleContainer,
    ModuleGraphBuilder,
    ParseBoolPipe,
    ParseFloatPipe,
    ParseIntPipe,
    PipelineRunner,
    PluginApplication,
    PydanticValidator,
    Reflector,
    TrimPipe,
    ValidationPipe,
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

# Domain exports
from plugkit.domain import (
    BODY_KEY,
    REQUEST_KEY,
    BadRequestError,
    CircularDependencyError,
    CompositionPolicy,
    ContextType,
    DynamicModule,
    ErrorResponse,
    ForbiddenError,
    GraphError,
    GraphErrorKind,
    HookContext,
    HttpException,
    ICallHandler,
    IExceptionFilter,
    IGuard,
    IInterceptor,
    IMiddleware,
    Inject,
    InternalServerError,
    IPipe,
    IValidator,
    MiddlewareBinding,
    ModuleNode,
    ModuleResolutionError,
    NotFoundError,
    PipelineError,
    PlugkitException,
    PluginSettings,
    ProviderConstructionError,
    ProviderDefinition,
    ResponseKind,
    RestContext,
    RouteRule,
    Scope,
    UnauthorizedError,
    UnresolvableDependencyError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Application
    "PluginApplication",
    "ModuleGraphBuilder",
    "ModuleContainer",
    "PipelineRunner",
    "ExecutionContext",
    "HookRegistrar",
    "Reflector",
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
    # Models
    "ModuleNode",
    "DynamicModule",
    "ProviderDefinition",
    "Inject",
    "Scope",
    "MiddlewareBinding",
    "RouteRule",
    "RestContext",
    "HookContext",
    "ErrorResponse",
    "ResponseKind",
    "ContextType",
    "CompositionPolicy",
    "GraphErrorKind",
    "PluginSettings",
    "BODY_KEY",
    "REQUEST_KEY",
    # Interfaces
    "IGuard",
    "IPipe",
    "IInterceptor",
    "ICallHandler",
    "IExceptionFilter",
    "IMiddleware",
    "IValidator",
    # Exceptions
    "PlugkitException",
    "GraphError",
    "ModuleResolutionError",
    "UnresolvableDependencyError",
    "CircularDependencyError",
    "ProviderConstructionError",
    "PipelineError",
    "HttpException",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ValidationError",
    "InternalServerError",
]
