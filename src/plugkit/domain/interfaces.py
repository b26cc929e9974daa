from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, TypeVar

from plugkit.domain.models import ArgumentMetadata, MetadataEntry, ModuleNode, Token

if TYPE_CHECKING:
    from plugkit.application.execution_context import ExecutionContext

T = TypeVar("T")


class IContainer(ABC):
    """Abstract interface for module-aware dependency resolution."""

    @abstractmethod
    def resolve(self, token: Token, module: Optional[str] = None) -> Any:
        """Resolve the instance provided for a token.

        Args:
            token: The token to resolve.
            module: Key of the requesting module. Defaults to the root module.
        """

    @abstractmethod
    def has(self, token: Token, module: Optional[str] = None) -> bool:
        """Whether a provider for the token is visible from the module."""

    @abstractmethod
    def instantiate(self, cls: Type[T], module: Optional[str] = None) -> T:
        """Construct a class that is not a registered provider, injecting its constructor."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every cached singleton instance."""


class IReflector(ABC):
    """Abstract interface for reading metadata attached to types and methods."""

    @abstractmethod
    def get_type_metadata(self, target: type, marker: str) -> List[MetadataEntry]:
        """Entries attached to a type under a marker, in registration order."""

    @abstractmethod
    def get_method_metadata(self, target: type, method_name: str, marker: str) -> List[MetadataEntry]:
        """Entries attached to a method under a marker, in registration order."""


class DynamicModule(ABC):
    """A module whose declaration is produced at graph build time.

    Example:
        >>> class ConfigModule(DynamicModule):
        ...     def __init__(self, options):
        ...         self.options = options
        ...
        ...     def register(self) -> ModuleNode:
        ...         return ModuleNode(
        ...             name="ConfigModule",
        ...             providers=[ProviderDefinition.for_value("config.options", self.options)],
        ...             exports=["config.options"],
        ...         )
    """

    @abstractmethod
    def register(self) -> ModuleNode:
        """Materialize the module declaration."""


class IGuard(ABC):
    """Decides whether an invocation may proceed."""

    @abstractmethod
    def can_activate(self, context: "ExecutionContext") -> bool:
        """Return True to let the invocation proceed."""


class IPipe(ABC):
    """Transforms or validates a single handler argument."""

    @abstractmethod
    def transform(self, value: Any, metadata: ArgumentMetadata) -> Any:
        """Return the transformed value, or raise ``ValidationError``."""


class ICallHandler(ABC):
    """Handle to the next layer of the interceptor chain."""

    @abstractmethod
    def handle(self) -> Any:
        """Run the inner layers and the handler, returning their result."""


class IInterceptor(ABC):
    """Wraps the handler call with pre and post processing."""

    @abstractmethod
    def intercept(self, context: "ExecutionContext", next: ICallHandler) -> Any:
        """Call ``next.handle()`` at most once and return the (possibly transformed) result."""


class IExceptionFilter(ABC):
    """Translates an error into a response."""

    @abstractmethod
    def catch_exception(self, error: Exception, context: "ExecutionContext") -> Any:
        """Return a response, or raise to hand the error to the next filter."""


class IMiddleware(ABC):
    """Runs before the pipeline for HTTP invocations."""

    @abstractmethod
    def use(self, request: Any) -> Any:
        """Return the request to continue, or a response to stop."""


class IValidator(ABC):
    """Evaluates a value against a rule set."""

    @abstractmethod
    def validate(self, value: Any, rules: Any) -> Dict[str, str]:
        """Return a map of field name to error message. Empty means valid."""
