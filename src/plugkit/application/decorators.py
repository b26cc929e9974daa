"""
Application layer - Metadata decorators.

Thin helpers over ``Reflector.set_metadata``. Each one records a single entry
on the decorated class or function and returns it unchanged.
"""

from typing import Any, Callable, Optional, Type

from plugkit.application.reflector import MetadataKeys, Reflector, metadata_decorator
from plugkit.domain import IPipe


def controller(prefix: str = "", *, reflector: Optional[Reflector] = None) -> Callable[[Type], Type]:
    """Mark a class as a controller with a route prefix.

    Example:
        >>> @controller("/posts")
        ... class PostsController:
        ...     @get("/{post_id}")
        ...     def find_one(self, post_id: int):
        ...         ...
    """
    return metadata_decorator(MetadataKeys.CONTROLLER, prefix, reflector=reflector)


def route(http_method: str, path: str = "", *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Bind a controller method to an HTTP verb and path."""
    return metadata_decorator(MetadataKeys.ROUTE, http_method.upper(), path, reflector=reflector)


def get(path: str = "", *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    return route("GET", path, reflector=reflector)


def post(path: str = "", *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    return route("POST", path, reflector=reflector)


def put(path: str = "", *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    return route("PUT", path, reflector=reflector)


def patch(path: str = "", *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    return route("PATCH", path, reflector=reflector)


def delete(path: str = "", *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    return route("DELETE", path, reflector=reflector)


def on_action(hook_name: str, priority: int = 10, *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Bind a controller method to an action hook. Its return value is discarded."""
    return metadata_decorator(MetadataKeys.HOOK, hook_name, priority, False, reflector=reflector)


def on_filter(hook_name: str, priority: int = 10, *, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Bind a controller method to a filter hook. Its return value replaces the filtered value."""
    return metadata_decorator(MetadataKeys.HOOK, hook_name, priority, True, reflector=reflector)


def use_guards(*guards: Any, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Attach guards (instances or classes) to a controller or a method."""
    return metadata_decorator(MetadataKeys.GUARDS, *guards, reflector=reflector)


def use_interceptors(*interceptors: Any, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Attach interceptors to a controller or a method. First listed is outermost."""
    return metadata_decorator(MetadataKeys.INTERCEPTORS, *interceptors, reflector=reflector)


def use_pipes(*pipes: Any, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Attach pipes applied to every parameter of a controller or a method."""
    return metadata_decorator(MetadataKeys.PIPES, *pipes, reflector=reflector)


def use_filters(*filters: Any, reflector: Optional[Reflector] = None) -> Callable[[Any], Any]:
    """Attach exception filters to a controller or a method. First listed is tried first."""
    return metadata_decorator(MetadataKeys.FILTERS, *filters, reflector=reflector)


def catch(*exception_types: Type[BaseException], reflector: Optional[Reflector] = None) -> Callable[[Type], Type]:
    """Restrict an exception filter class to the given exception types."""
    return metadata_decorator(MetadataKeys.CATCH, *exception_types, reflector=reflector)


def param(
    name: str,
    *pipes: IPipe,
    key: Optional[str] = None,
    coerce: bool = True,
    reflector: Optional[Reflector] = None,
) -> Callable[[Any], Any]:
    """Configure a single handler parameter.

    Args:
        name: Parameter name in the handler signature.
        *pipes: Parameter-specific pipes, applied after global, class and method pipes.
        key: Raw argument key to read instead of the parameter name
            (``BODY_KEY`` for the whole body, ``REQUEST_KEY`` for the transport request).
        coerce: Whether implicit type coercion applies when no parameter pipe is given.
    """
    return metadata_decorator(MetadataKeys.PARAM, name, pipes, key, coerce, reflector=reflector)
