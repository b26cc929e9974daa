from typing import Any, Dict, List, Optional

from plugkit.domain.enums import GraphErrorKind


def token_name(token: Any) -> str:
    """Human readable name for a provider token."""
    return getattr(token, "__name__", None) or str(token)


class PlugkitException(Exception):
    """Base exception for plugkit errors."""


class GraphError(PlugkitException):
    """Base exception for module graph errors raised at bootstrap."""


class ModuleResolutionError(GraphError):
    """Raised when the module graph cannot be built.

    Attributes:
        kind: Why the build failed.
        path: Module names forming an import cycle, when relevant.
        token: The offending provider token, when relevant.
        module: Name of the module where the failure was detected.
    """

    def __init__(
        self,
        kind: GraphErrorKind,
        message: str,
        path: Optional[List[str]] = None,
        token: Any = None,
        module: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.path = path or []
        self.token = token
        self.module = module
        super().__init__(f"[{kind.value}] {message}")


class UnresolvableDependencyError(PlugkitException):
    """Raised when a token has no provider visible from the requesting module.

    This occurs when:
    - No module in scope provides or exports the token.
    - A constructor parameter lacks both a type hint and a default value.

    Attributes:
        token: The token that could not be resolved.
        module: The module the resolution was requested from.
        reason: Optional reason for the failure.
    """

    def __init__(self, token: Any, module: Optional[str] = None, reason: Optional[str] = None) -> None:
        self.token = token
        self.module = module
        self.reason = reason
        message = f"Cannot resolve dependency for token: {token_name(token)}"
        if module:
            message += f" in module {module}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class CircularDependencyError(PlugkitException):
    """Raised when constructing a provider requires the provider itself.

    Attributes:
        dependency_chain: List of tokens involved in the circular dependency.
    """

    def __init__(self, dependency_chain: List[Any]) -> None:
        self.dependency_chain = dependency_chain
        message = f"Circular dependency detected: {' -> '.join(token_name(token) for token in dependency_chain)}"
        super().__init__(message)


class ProviderConstructionError(PlugkitException):
    """Raised when a provider's class constructor or factory fails.

    The failed instance is never cached, the next resolution tries again.

    Attributes:
        token: The token whose provider failed.
        reason: Description of the underlying failure.
    """

    def __init__(self, token: Any, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"Failed to construct provider {token_name(token)}: {reason}")


class PipelineError(PlugkitException):
    """Raised for misuse of the pipeline contracts.

    This occurs when:
    - An interceptor calls ``next.handle()`` more than once.
    - A hook context is popped from an empty stack.
    """


class HttpException(PlugkitException):
    """Base class for errors that carry an HTTP status code.

    Attributes:
        message: Human readable message.
        status_code: HTTP status code of the error response.
        reason: Optional machine readable reason.
        errors: Optional field to message map.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        errors: Optional[Dict[str, str]] = None,
    ) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.reason = reason
        self.errors = errors
        super().__init__(self.message)


class BadRequestError(HttpException):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(HttpException):
    """Raised when a guard rejects an invocation."""

    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(HttpException):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(HttpException):
    status_code = 404
    default_message = "Not found"


class ValidationError(HttpException):
    """Raised by pipes when an argument fails validation.

    Attributes:
        errors: Map of field name to validation message.
    """

    status_code = 422
    default_message = "Validation failed"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None, reason: Optional[str] = None) -> None:
        super().__init__(message=message, reason=reason, errors=dict(errors))


class InternalServerError(HttpException):
    status_code = 500
    default_message = "Internal server error"
