from enum import Enum


class Scope(str, Enum):
    """Defines the lifetime of a provider instance.

    Attributes:
        SINGLETON: Single instance shared for the lifetime of the application.
        TRANSIENT: New instance created on each resolution.
    """

    SINGLETON = "singleton"
    TRANSIENT = "transient"

    def __str__(self) -> str:
        return self.value


class ContextType(str, Enum):
    """Discriminator for the boundary an execution context currently represents."""

    REST = "rest"
    HOOK = "hook"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


class ResponseKind(str, Enum):
    """Shape of the response produced by the exception phase.

    Attributes:
        HTTP: Status-coded structured payload for HTTP-originated invocations.
        STRUCTURED: Generic structured payload for non-HTTP callers expecting data.
        ERROR_PAGE: Human-readable error page.
    """

    HTTP = "http"
    STRUCTURED = "structured"
    ERROR_PAGE = "error_page"

    def __str__(self) -> str:
        return self.value


class GraphErrorKind(str, Enum):
    """Reasons a module graph can fail to build."""

    CIRCULAR_DEPENDENCY = "circular_dependency"
    UNRESOLVED_TOKEN = "unresolved_token"
    DUPLICATE_PROVIDER = "duplicate_provider"
    INVALID_EXPORT = "invalid_export"
    INVALID_MODULE = "invalid_module"
    DUPLICATE_GLOBAL = "duplicate_global"

    def __str__(self) -> str:
        return self.value


class CompositionPolicy(str, Enum):
    """How global enhancers declared by several modules are combined.

    Attributes:
        CONCATENATE: Keep every declaration, in module discovery order.
        DEDUPLICATE: Keep the first declaration of each enhancer.
        UNIQUE: Fail the graph build when an enhancer is declared twice.
    """

    CONCATENATE = "concatenate"
    DEDUPLICATE = "deduplicate"
    UNIQUE = "unique"

    def __str__(self) -> str:
        return self.value
