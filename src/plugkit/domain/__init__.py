"""
Domain layer - Core models and contracts.

This layer contains the value objects, errors and extension interfaces of the runtime.
It has no dependencies on other layers.
"""

from .enums import CompositionPolicy, ContextType, GraphErrorKind, ResponseKind, Scope
from .exceptions import (
    BadRequestError,
    CircularDependencyError,
    ForbiddenError,
    GraphError,
    HttpException,
    InternalServerError,
    ModuleResolutionError,
    NotFoundError,
    PipelineError,
    PlugkitException,
    ProviderConstructionError,
    UnauthorizedError,
    UnresolvableDependencyError,
    ValidationError,
    token_name,
)
from .interfaces import (
    DynamicModule,
    ICallHandler,
    IContainer,
    IExceptionFilter,
    IGuard,
    IInterceptor,
    IMiddleware,
    IPipe,
    IReflector,
    IValidator,
)
from .models import (
    BODY_KEY,
    REQUEST_KEY,
    ArgumentMetadata,
    ClassStrategy,
    Dependency,
    EnhancerBinding,
    ErrorResponse,
    FactoryStrategy,
    GlobalEnhancers,
    HookContext,
    Inject,
    MetadataEntry,
    MiddlewareBinding,
    ModuleNode,
    ProviderBinding,
    ProviderDefinition,
    RestContext,
    RouteDefinition,
    RouteRule,
    Token,
    ValueStrategy,
)
from .settings import PluginSettings

__all__ = [
    # Enums
    "Scope",
    "ContextType",
    "ResponseKind",
    "GraphErrorKind",
    "CompositionPolicy",
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
    "token_name",
    # Interfaces
    "IContainer",
    "IReflector",
    "DynamicModule",
    "IGuard",
    "IPipe",
    "ICallHandler",
    "IInterceptor",
    "IExceptionFilter",
    "IMiddleware",
    "IValidator",
    # Models
    "Token",
    "BODY_KEY",
    "REQUEST_KEY",
    "Inject",
    "ClassStrategy",
    "ValueStrategy",
    "FactoryStrategy",
    "ProviderDefinition",
    "ProviderBinding",
    "Dependency",
    "RouteRule",
    "MiddlewareBinding",
    "ModuleNode",
    "EnhancerBinding",
    "GlobalEnhancers",
    "MetadataEntry",
    "RestContext",
    "HookContext",
    "ArgumentMetadata",
    "RouteDefinition",
    "ErrorResponse",
    # Settings
    "PluginSettings",
]
