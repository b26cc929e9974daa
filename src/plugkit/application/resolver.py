import inspect
from typing import Annotated, Any, Callable, Dict, List, Type, get_args, get_origin, get_type_hints

from plugkit.domain import (
    Dependency,
    FactoryStrategy,
    Inject,
    ProviderDefinition,
    UnresolvableDependencyError,
    ValueStrategy,
)


class ProviderResolver:
    """Reads the dependencies of a provider and builds its instance.

    Class providers are introspected with ``inspect`` and type hints: each
    constructor parameter's token is its type hint, or the token of an
    ``Inject`` marker inside ``Annotated``, or the matching entry of the
    strategy's explicit ``inject`` list. Factory providers take their
    ``inject`` tokens as positional arguments.
    """

    def get_dependencies(self, definition: ProviderDefinition) -> List[Dependency]:
        """List the tokens a provider needs.

        Args:
            definition: The provider definition to inspect.

        Returns:
            Dependencies in parameter order.

        Raises:
            UnresolvableDependencyError: If a required constructor parameter has
                neither a type hint, an ``Inject`` marker nor a default value.
        """
        strategy = definition.strategy
        if isinstance(strategy, ValueStrategy):
            return []
        if isinstance(strategy, FactoryStrategy):
            return [
                Dependency(name=f"arg{index}", token=token, positional=True)
                for index, token in enumerate(strategy.inject)
            ]
        if strategy.inject is not None:
            return [
                Dependency(name=f"arg{index}", token=token, positional=True)
                for index, token in enumerate(strategy.inject)
            ]
        return self.get_constructor_dependencies(strategy.use_class)

    def get_constructor_dependencies(self, cls: Type) -> List[Dependency]:
        """Read the injectable parameters of a class constructor.

        Example:
            >>> class PostService:
            ...     def __init__(self, repo: PostRepository, cache: Annotated[Any, Inject("cache")]):
            ...         ...
            >>> [d.token for d in ProviderResolver().get_constructor_dependencies(PostService)]
            [PostRepository, 'cache']
        """
        init = cls.__init__
        if init is object.__init__:
            return []

        signature = inspect.signature(init)
        try:
            type_hints = get_type_hints(init, include_extras=True)
        except Exception as e:
            raise UnresolvableDependencyError(cls, reason=f"Cannot read constructor type hints: {e}") from e

        dependencies = []
        for param_name, param in signature.parameters.items():
            if param_name == "self":
                continue

            # Skip *args and **kwargs parameters
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            has_default = param.default is not inspect.Parameter.empty
            hint = type_hints.get(param_name, inspect.Parameter.empty)
            token = self._token_from_hint(hint)

            if token is inspect.Parameter.empty:
                if has_default:
                    continue
                raise UnresolvableDependencyError(
                    cls,
                    reason=f"Parameter '{param_name}' lacks type hint and has no default value.",
                )

            dependencies.append(
                Dependency(
                    name=param_name,
                    token=token,
                    optional=has_default,
                    default=param.default if has_default else None,
                    positional=param.kind == inspect.Parameter.POSITIONAL_ONLY,
                )
            )
        return dependencies

    @staticmethod
    def _token_from_hint(hint: Any) -> Any:
        if get_origin(hint) is Annotated:
            base, *extras = get_args(hint)
            for extra in extras:
                if isinstance(extra, Inject):
                    return extra.token
            return base
        return hint

    def create(self, definition: ProviderDefinition, resolve: Callable[[Dependency], Any]) -> Any:
        """Produce an instance of a provider.

        Args:
            definition: The provider definition.
            resolve: Called for every dependency, returns the value to inject.

        Returns:
            The produced instance.
        """
        strategy = definition.strategy
        if isinstance(strategy, ValueStrategy):
            return strategy.value

        dependencies = self.get_dependencies(definition)
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for dependency in dependencies:
            value = resolve(dependency)
            if dependency.positional:
                args.append(value)
            else:
                kwargs[dependency.name] = value

        if isinstance(strategy, FactoryStrategy):
            return strategy.factory(*args, **kwargs)
        return strategy.use_class(*args, **kwargs)
