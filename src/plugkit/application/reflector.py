"""Application layer - Metadata registry for types and methods."""

import logging
from typing import Any, Callable, Dict, List, Optional

from plugkit.domain import IReflector, MetadataEntry

logger = logging.getLogger(__name__)


class MetadataKeys:
    """Marker tokens understood by the runtime."""

    CONTROLLER = "plugkit:controller"
    ROUTE = "plugkit:route"
    HOOK = "plugkit:hook"
    GUARDS = "plugkit:guards"
    INTERCEPTORS = "plugkit:interceptors"
    PIPES = "plugkit:pipes"
    FILTERS = "plugkit:filters"
    CATCH = "plugkit:catch"
    PARAM = "plugkit:param"


def _function_key(member: Any) -> Any:
    # classmethods and bound methods carry the function in __func__
    return getattr(member, "__func__", member)


class Reflector(IReflector):
    """Stores metadata entries per target and answers lookups by marker.

    Targets are classes or the functions that implement methods. Method
    metadata is keyed by the underlying function, so entries registered on a
    function before its class exists are found through the class later, and
    subclasses that inherit a method inherit its entries.

    Attributes:
        _entries: Map of target to marker to ordered entries.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._entries: Dict[Any, Dict[str, List[MetadataEntry]]] = {}

    def set_metadata(self, target: Any, marker: str, *args: Any) -> None:
        """Attach an entry to a class or function.

        Args:
            target: The class or function receiving the entry.
            marker: Marker token.
            *args: Constructor-like arguments of the marker.
        """
        key = _function_key(target)
        self._entries.setdefault(key, {}).setdefault(marker, []).append(MetadataEntry(marker=marker, args=args))

    def set_type_metadata(self, target: type, marker: str, *args: Any) -> None:
        """Attach an entry to a type."""
        self.set_metadata(target, marker, *args)

    def set_method_metadata(self, target: type, method_name: str, marker: str, *args: Any) -> None:
        """Attach an entry to a method of a type.

        Raises:
            AttributeError: If the type has no such method.
        """
        self.set_metadata(getattr(target, method_name), marker, *args)

    def get_type_metadata(self, target: type, marker: str) -> List[MetadataEntry]:
        return list(self._entries.get(target, {}).get(marker, []))

    def get_method_metadata(self, target: type, method_name: str, marker: str) -> List[MetadataEntry]:
        member = getattr(target, method_name, None)
        if member is None:
            return []
        return list(self._entries.get(_function_key(member), {}).get(marker, []))

    def get_type_args(self, target: type, marker: str) -> List[Any]:
        """Arguments of every entry under a marker, flattened in order."""
        return [arg for entry in self.get_type_metadata(target, marker) for arg in entry.args]

    def get_method_args(self, target: type, method_name: str, marker: str) -> List[Any]:
        """Arguments of every method entry under a marker, flattened in order."""
        return [arg for entry in self.get_method_metadata(target, method_name, marker) for arg in entry.args]

    def get_annotated_methods(self, target: type, marker: str) -> List[str]:
        """Names of the methods of a type carrying a marker, in definition order."""
        names: List[str] = []
        for klass in reversed(target.__mro__):
            for name in vars(klass):
                if name in names or name.startswith("__"):
                    continue
                if self.get_method_metadata(target, name, marker):
                    names.append(name)
        return names

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()


default_reflector = Reflector()


def metadata_decorator(marker: str, *args: Any, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Build a decorator that attaches an entry to the class or function it decorates."""

    def decorator(target: Any) -> Any:
        (reflector or default_reflector).set_metadata(target, marker, *args)
        logger.debug("Attached %s to %s", marker, getattr(target, "__qualname__", target))
        return target

    return decorator
