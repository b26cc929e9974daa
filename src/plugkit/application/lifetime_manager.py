import logging
import threading
from typing import Any, Callable, Dict, Tuple

from plugkit.domain import (
    PlugkitException,
    ProviderBinding,
    ProviderConstructionError,
    Scope,
    Token,
    token_name,
)

logger = logging.getLogger(__name__)


class LifetimeManager:
    """Applies the scope of a provider when producing its instance.

    Singleton instances are cached per provider binding for the lifetime of
    the manager. Transient instances are never cached. First construction of a
    singleton happens under a re-entrant lock, so nested resolutions on the
    same thread proceed while other threads wait; cached reads skip the lock.

    Attributes:
        _singleton_cache: Cache of singleton instances keyed by (module, token).
        _lock: Guards first construction of singletons.
    """

    def __init__(self) -> None:
        """Initialize the lifetime manager with an empty cache."""
        self._singleton_cache: Dict[Tuple[str, Token], Any] = {}
        self._lock = threading.RLock()

    def get_or_create(self, binding: ProviderBinding, factory: Callable[[], Any]) -> Any:
        """Get the cached instance or create a new one according to scope.

        Args:
            binding: The provider binding being resolved.
            factory: Function producing a new instance.

        Returns:
            The cached singleton, or a new instance for transient providers.

        Raises:
            ProviderConstructionError: If the factory fails with an error that is
                not already a plugkit error. Nothing is cached in that case.
        """
        if binding.definition.scope == Scope.TRANSIENT:
            return self._create(binding, factory)

        cache_key = binding.cache_key
        if cache_key in self._singleton_cache:
            return self._singleton_cache[cache_key]

        with self._lock:
            if cache_key not in self._singleton_cache:
                self._singleton_cache[cache_key] = self._create(binding, factory)
                logger.debug("Cached singleton %s from module %s", token_name(binding.token), binding.owner)
            return self._singleton_cache[cache_key]

    @staticmethod
    def _create(binding: ProviderBinding, factory: Callable[[], Any]) -> Any:
        try:
            return factory()
        except PlugkitException:
            raise
        except Exception as e:
            raise ProviderConstructionError(binding.token, str(e)) from e

    def is_cached(self, binding: ProviderBinding) -> bool:
        return binding.cache_key in self._singleton_cache

    def clear_cache(self) -> None:
        """Clear all cached singleton instances."""
        with self._lock:
            self._singleton_cache.clear()
