"""Application layer - Middleware stage for HTTP invocations."""

import logging
import re
from typing import Any, List, Optional, Pattern, Sequence, Tuple

from plugkit.application.container import ModuleContainer
from plugkit.domain import EnhancerBinding, MiddlewareBinding, RouteRule

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{[^/{}]+\}")


def _normalize_path(path: str) -> str:
    return "/" + path.strip("/")


class RouteMatcher:
    """Matches a request path and method against a route rule.

    Paths match exactly, ``*`` matches everything, and patterns may use ``*``
    (any characters, slashes included) and ``{param}`` (one path segment).

    Example:
        >>> RouteMatcher(RouteRule(path="/posts/{post_id}", methods=("GET",))).matches("/posts/42", "get")
        True
    """

    def __init__(self, rule: RouteRule) -> None:
        self.rule = rule
        self._methods = {method.upper() for method in rule.methods}
        self._pattern = self._compile(rule.path)

    @staticmethod
    def _compile(path: str) -> Optional[Pattern[str]]:
        if path == "*":
            return None
        normalized = _normalize_path(path)
        if "*" not in normalized and not _PLACEHOLDER.search(normalized):
            return re.compile(re.escape(normalized))
        expression = ""
        position = 0
        for match in re.finditer(r"\*|\{[^/{}]+\}", normalized):
            expression += re.escape(normalized[position : match.start()])
            expression += ".*" if match.group() == "*" else "[^/]+"
            position = match.end()
        expression += re.escape(normalized[position:])
        return re.compile(expression)

    def matches(self, path: str, method: str) -> bool:
        if "*" not in self._methods and method.upper() not in self._methods:
            return False
        if self._pattern is None:
            return True
        return self._pattern.fullmatch(_normalize_path(path)) is not None


class MiddlewareConsumer:
    """Runs the middleware applying to a request, in declaration order.

    A middleware returning an object of the request's type continues the
    chain with it; any other return value is a complete response that stops
    the chain and skips the pipeline.

    Attributes:
        _bindings: Middleware declarations with their matchers and module.
    """

    def __init__(self, container: ModuleContainer, bindings: Sequence[EnhancerBinding] = ()) -> None:
        self._container = container
        self._bindings: List[Tuple[MiddlewareBinding, str, List[RouteMatcher], List[RouteMatcher]]] = []
        for binding in bindings:
            declaration: MiddlewareBinding = binding.enhancer
            self._bindings.append(
                (
                    declaration,
                    binding.module,
                    [RouteMatcher(rule) for rule in declaration.routes],
                    [RouteMatcher(rule) for rule in declaration.exclude],
                )
            )

    def applicable(self, path: str, method: str) -> List[Any]:
        """Middleware instances applying to a path and method, in declaration order."""
        middleware = []
        for declaration, module, routes, exclude in self._bindings:
            if not any(matcher.matches(path, method) for matcher in routes):
                continue
            if any(matcher.matches(path, method) for matcher in exclude):
                continue
            middleware.append(self._container.get_enhancer(declaration.middleware, module))
        return middleware

    def apply(self, request: Any, path: str, method: str) -> Tuple[Any, Optional[Any]]:
        """Run the applicable middleware.

        Returns:
            The (possibly replaced) request and None to continue, or the
            request as last seen and the response that stopped the chain.
        """
        request_type = type(request)
        for middleware in self.applicable(path, method):
            result = middleware.use(request)
            if not isinstance(result, request_type):
                logger.debug("%s answered %s %s", type(middleware).__name__, method, path)
                return request, result
            request = result
        return request, None
