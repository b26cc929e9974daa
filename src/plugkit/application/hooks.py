"""Application layer - Named extension points fired by the host."""

import itertools
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class HookCallback(BaseModel):
    """A callback registered on a hook."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    callback: Callable[..., Any]
    priority: int = 10
    sequence: int = 0


class HookRegistrar:
    """Registry and dispatcher of action and filter hooks.

    Callbacks run by ascending priority, then registration order. Actions
    discard return values; filters pass each callback's return value to the
    next one as the filtered value. Dispatch is re-entrant: a callback may
    fire other hooks, or the same one.

    Example:
        >>> hooks = HookRegistrar()
        >>> hooks.add_filter("the_title", str.upper)
        >>> hooks.apply_filters("the_title", "hello")
        'HELLO'
    """

    def __init__(self) -> None:
        self._hooks: Dict[str, List[HookCallback]] = {}
        self._sequence = itertools.count()
        self._running: List[str] = []

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._add(hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._add(hook_name, callback, priority)

    def _add(self, hook_name: str, callback: Callable[..., Any], priority: int) -> None:
        entries = self._hooks.setdefault(hook_name, [])
        entries.append(HookCallback(callback=callback, priority=priority, sequence=next(self._sequence)))
        entries.sort(key=lambda entry: (entry.priority, entry.sequence))

    def remove_hook(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        """Remove a callback. Returns whether it was registered."""
        entries = self._hooks.get(hook_name, [])
        for entry in entries:
            if entry.callback == callback:
                entries.remove(entry)
                return True
        return False

    def has_hook(self, hook_name: str, callback: Optional[Callable[..., Any]] = None) -> bool:
        entries = self._hooks.get(hook_name, [])
        if callback is None:
            return bool(entries)
        return any(entry.callback == callback for entry in entries)

    @property
    def current_hook(self) -> Optional[str]:
        """Name of the innermost hook being dispatched."""
        return self._running[-1] if self._running else None

    def do_action(self, hook_name: str, *args: Any) -> None:
        """Call every callback of an action hook."""
        for entry in self._snapshot(hook_name):
            self._running.append(hook_name)
            try:
                entry.callback(*args)
            finally:
                self._running.pop()

    def apply_filters(self, hook_name: str, value: Any, *args: Any) -> Any:
        """Pass a value through every callback of a filter hook and return it."""
        for entry in self._snapshot(hook_name):
            self._running.append(hook_name)
            try:
                value = entry.callback(value, *args)
            finally:
                self._running.pop()
        return value

    def _snapshot(self, hook_name: str) -> List[HookCallback]:
        entries = list(self._hooks.get(hook_name, []))
        logger.debug("Dispatching %s to %d callbacks", hook_name, len(entries))
        return entries
