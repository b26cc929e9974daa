from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from plugkit.domain.enums import ResponseKind, Scope

Token = Any

BODY_KEY = "$body"
REQUEST_KEY = "$request"


class Inject:
    """Explicit token override for a constructor parameter.

    Used inside ``typing.Annotated``::

        def __init__(self, repo: Annotated[PostRepository, Inject("posts.repository")]):
            ...

    Attributes:
        token: The token to resolve instead of the parameter's type hint.
    """

    __slots__ = ("token",)

    def __init__(self, token: Token) -> None:
        self.token = token

    def __repr__(self) -> str:
        return f"Inject({self.token!r})"


class ClassStrategy(BaseModel):
    """Build the instance by calling a class with injected constructor arguments.

    Attributes:
        use_class: The class to instantiate.
        inject: Optional explicit tokens for the positional constructor parameters.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    use_class: Type = Field(..., description="The class to instantiate.")
    inject: Optional[Tuple[Token, ...]] = Field(
        default=None, description="Explicit tokens for the constructor parameters, in order."
    )


class ValueStrategy(BaseModel):
    """Return a precomputed value as-is."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = Field(..., description="The value returned on resolution.")


class FactoryStrategy(BaseModel):
    """Build the instance by calling a factory with injected arguments."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    factory: Callable[..., Any] = Field(..., description="Factory producing the value.")
    inject: Tuple[Token, ...] = Field(default=(), description="Tokens resolved as positional factory arguments.")


Strategy = Union[ClassStrategy, ValueStrategy, FactoryStrategy]


class ProviderDefinition(BaseModel):
    """Value object describing how a token is provided.

    Attributes:
        token: Key of the provider in the visibility table.
        strategy: How the instance is produced.
        scope: How long the produced instance lives.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    token: Token = Field(..., description="The token the definition provides.")
    strategy: Strategy = Field(..., description="Instance production strategy.")
    scope: Scope = Field(default=Scope.SINGLETON, description="Lifetime of the produced instance.")

    @classmethod
    def for_class(
        cls,
        use_class: Type,
        token: Token = None,
        scope: Scope = Scope.SINGLETON,
        inject: Optional[Sequence[Token]] = None,
    ) -> "ProviderDefinition":
        return cls(
            token=use_class if token is None else token,
            strategy=ClassStrategy(use_class=use_class, inject=tuple(inject) if inject is not None else None),
            scope=scope,
        )

    @classmethod
    def for_value(cls, token: Token, value: Any) -> "ProviderDefinition":
        return cls(token=token, strategy=ValueStrategy(value=value), scope=Scope.SINGLETON)

    @classmethod
    def for_factory(
        cls,
        token: Token,
        factory: Callable[..., Any],
        inject: Sequence[Token] = (),
        scope: Scope = Scope.SINGLETON,
    ) -> "ProviderDefinition":
        return cls(token=token, strategy=FactoryStrategy(factory=factory, inject=tuple(inject)), scope=scope)


class ProviderBinding(BaseModel):
    """A provider definition together with the module that declares it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    definition: ProviderDefinition
    owner: str = Field(..., description="Key of the declaring module.")

    @property
    def token(self) -> Token:
        return self.definition.token

    @property
    def cache_key(self) -> Tuple[str, Token]:
        return (self.owner, self.definition.token)


class Dependency(BaseModel):
    """A single injectable parameter of a class constructor or factory."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    token: Token
    optional: bool = False
    default: Any = None
    positional: bool = False


class RouteRule(BaseModel):
    """Path pattern and HTTP methods a middleware applies to.

    Attributes:
        path: Exact path, ``*`` for everything, or a pattern with ``*`` and ``{param}`` segments.
        methods: HTTP verbs, ``*`` for any.
    """

    model_config = ConfigDict(frozen=True)

    path: str = "*"
    methods: Tuple[str, ...] = ("*",)


class MiddlewareBinding(BaseModel):
    """A middleware with the routes it applies to and the routes it skips."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    middleware: Any = Field(..., description="Middleware instance or class.")
    routes: Tuple[RouteRule, ...] = (RouteRule(),)
    exclude: Tuple[RouteRule, ...] = ()


class ModuleNode(BaseModel):
    """Declaration of a module.

    Attributes:
        name: Module name, used in logs and error messages.
        imports: Static modules or dynamic modules this module imports.
        providers: Classes or provider definitions declared by the module.
        controllers: Controller classes declared by the module.
        exports: Tokens (or imported modules) visible to importers.
        is_global: Whether the exports are visible to every module.
        guards: Plugin-global guards.
        interceptors: Plugin-global interceptors.
        pipes: Plugin-global pipes.
        filters: Plugin-global exception filters.
        middlewares: Middleware applied to HTTP invocations.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    imports: List[Any] = Field(default_factory=list)
    providers: List[Any] = Field(default_factory=list)
    controllers: List[Type] = Field(default_factory=list)
    exports: List[Any] = Field(default_factory=list)
    is_global: bool = False
    guards: List[Any] = Field(default_factory=list)
    interceptors: List[Any] = Field(default_factory=list)
    pipes: List[Any] = Field(default_factory=list)
    filters: List[Any] = Field(default_factory=list)
    middlewares: List[MiddlewareBinding] = Field(default_factory=list)


class EnhancerBinding(BaseModel):
    """A plugin-global enhancer together with the module that declared it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    enhancer: Any
    module: str


class GlobalEnhancers(BaseModel):
    """Plugin-global enhancers collected from every module of the graph."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    guards: List[EnhancerBinding] = Field(default_factory=list)
    interceptors: List[EnhancerBinding] = Field(default_factory=list)
    pipes: List[EnhancerBinding] = Field(default_factory=list)
    filters: List[EnhancerBinding] = Field(default_factory=list)
    middlewares: List[EnhancerBinding] = Field(default_factory=list)


class MetadataEntry(BaseModel):
    """A marker attached to a type or method, with its arguments."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    marker: str
    args: Tuple[Any, ...] = ()


class RestContext(BaseModel):
    """Immutable snapshot of one HTTP invocation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    request: Any
    response: Any = None
    controller_type: Optional[Type] = None
    method_name: Optional[str] = None
    path: Optional[str] = None
    http_method: Optional[str] = None


class HookContext(BaseModel):
    """Snapshot of one hook-bound handler invocation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    hook_name: str
    args: Tuple[Any, ...] = ()
    controller_type: Optional[Type] = None
    method_name: Optional[str] = None
    is_filter_hook: bool = False


class ArgumentMetadata(BaseModel):
    """Describes the handler parameter a pipe is transforming."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    index: int
    annotation: Any = None
    key: str
    coerce: bool = True


class RouteDefinition(BaseModel):
    """An HTTP route bound to a controller method."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    controller_type: Type
    method_name: str
    http_method: str
    path: str
    module: str


class ErrorResponse(BaseModel):
    """Response produced by the exception phase.

    Debug fields (``file``, ``line``, ``filter_name``, ``stack_trace``) are only
    populated when debug mode is on.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResponseKind
    message: str
    status_code: int
    errors: Optional[Dict[str, str]] = None
    reason: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    filter_name: Optional[str] = None
    stack_trace: Optional[str] = None
    html: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Structured body of the response, without unset optional fields."""
        return self.model_dump(exclude={"kind", "html"}, exclude_none=True)
