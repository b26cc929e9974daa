import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from plugkit.application.circular_detector import CircularDependencyDetector
from plugkit.application.lifetime_manager import LifetimeManager
from plugkit.application.module_graph import ResolvedGraph
from plugkit.application.resolver import ProviderResolver
from plugkit.domain import (
    Dependency,
    IContainer,
    ProviderBinding,
    ProviderDefinition,
    Token,
    UnresolvableDependencyError,
    token_name,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ModuleContainer(IContainer):
    """Dependency injection container over a resolved module graph.

    Resolves tokens from the point of view of a requesting module: only the
    bindings visible to that module can be injected, and dependencies of a
    provider are resolved from the module that declares it.

    Attributes:
        _graph: The resolved module graph.
        _resolver: Component reading dependencies and building instances.
        _lifetime_manager: Component applying singleton and transient scopes.
        _circular_detector: Component detecting circular dependencies.
        _enhancer_cache: Instances of enhancer classes that are not providers.
    """

    def __init__(
        self,
        graph: ResolvedGraph,
        resolver: Optional[ProviderResolver] = None,
        lifetime_manager: Optional[LifetimeManager] = None,
    ) -> None:
        """Initialize the container over a graph."""
        self._graph = graph
        self._resolver = resolver or ProviderResolver()
        self._lifetime_manager = lifetime_manager or LifetimeManager()
        self._circular_detector = CircularDependencyDetector()
        self._enhancer_cache: Dict[Tuple[Type, str], Any] = {}
        self._controller_modules: Dict[Type, str] = {}
        for controller, module in graph.controllers():
            self._controller_modules.setdefault(controller, module)

    @property
    def graph(self) -> ResolvedGraph:
        return self._graph

    @property
    def root_module(self) -> str:
        return self._graph.root_key

    def resolve(self, token: Token, module: Optional[str] = None) -> Any:
        """Resolve the instance provided for a token.

        Args:
            token: The token to resolve.
            module: Key of the requesting module. Defaults to the root module.

        Returns:
            The instance, shared for singleton providers and new for transient ones.

        Raises:
            UnresolvableDependencyError: If no provider for the token is visible.
            CircularDependencyError: If constructing the token requires itself.
            ProviderConstructionError: If the provider's constructor or factory fails.

        Example:
            >>> service = container.resolve(PostService, module="PostsModule")
        """
        module_key = module or self._graph.root_key
        binding = self._graph.lookup(module_key, token)
        if binding is None:
            raise UnresolvableDependencyError(token, module_key, "No provider is visible from this module.")
        return self._resolve_binding(binding)

    def _resolve_binding(self, binding: ProviderBinding) -> Any:
        self._circular_detector.push(binding.token, key=binding.cache_key)
        try:
            return self._lifetime_manager.get_or_create(
                binding,
                lambda: self._resolver.create(
                    binding.definition,
                    lambda dependency: self._resolve_dependency(dependency, binding.owner),
                ),
            )
        finally:
            self._circular_detector.pop()

    def _resolve_dependency(self, dependency: Dependency, module: str) -> Any:
        if dependency.optional and not self.has(dependency.token, module):
            return dependency.default
        return self.resolve(dependency.token, module)

    def has(self, token: Token, module: Optional[str] = None) -> bool:
        try:
            return self._graph.lookup(module or self._graph.root_key, token) is not None
        except TypeError:
            # unhashable tokens are never registered
            return False

    def instantiate(self, cls: Type[T], module: Optional[str] = None) -> T:
        """Construct a class that is not a registered provider.

        Its constructor dependencies are resolved from the given module. The
        instance is not cached.
        """
        module_key = module or self._graph.root_key
        definition = ProviderDefinition.for_class(cls)
        self._circular_detector.push(cls, key=("<instantiate>", module_key, cls))
        try:
            return self._resolver.create(
                definition, lambda dependency: self._resolve_dependency(dependency, module_key)
            )
        finally:
            self._circular_detector.pop()

    def get_enhancer(self, enhancer: Any, module: Optional[str] = None) -> Any:
        """Turn a guard, pipe, interceptor, filter or middleware declaration into an instance.

        Instances are returned as-is. Classes are resolved as providers when one
        is visible from the module, otherwise instantiated once per module.
        """
        if not isinstance(enhancer, type):
            return enhancer
        module_key = module or self._graph.root_key
        if self.has(enhancer, module_key):
            return self.resolve(enhancer, module_key)
        cache_key = (enhancer, module_key)
        if cache_key not in self._enhancer_cache:
            self._enhancer_cache[cache_key] = self.instantiate(enhancer, module_key)
            logger.debug("Instantiated enhancer %s for module %s", token_name(enhancer), module_key)
        return self._enhancer_cache[cache_key]

    def get_controllers(self) -> List[Tuple[Type, str]]:
        """Controller classes with the key of their declaring module."""
        return list(self._controller_modules.items())

    def get_controller_module(self, controller_type: Type) -> str:
        """Key of the module declaring a controller, the root module if unknown."""
        return self._controller_modules.get(controller_type, self._graph.root_key)

    def clear(self) -> None:
        """Drop every cached singleton and enhancer instance.

        Useful for testing or resetting the container state.
        """
        self._lifetime_manager.clear_cache()
        self._enhancer_cache.clear()
        self._circular_detector.clear()
