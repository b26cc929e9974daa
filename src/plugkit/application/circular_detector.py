"""Application layer - Circular dependency detection during resolution."""

import threading
from typing import Any, List, Optional, Tuple

from plugkit.domain import CircularDependencyError, Token


class CircularDependencyDetector:
    """Tracks the providers currently under construction.

    Uses thread-local storage so that each thread resolving through the same
    container has its own in-construction stack. Entries are identified by a
    key, the token itself unless one is given: the same token provided by two
    modules is two distinct entries. When a key appears twice in the stack, a
    circular dependency is detected.

    Attributes:
        _local: Thread-local storage for resolution stacks.
    """

    def __init__(self) -> None:
        """Initialize the detector with thread-local storage."""
        self._local = threading.local()

    def _get_stack(self) -> List[Tuple[Any, Token]]:
        """Get the current thread's resolution stack of (key, token) pairs."""
        if not hasattr(self._local, "stack"):
            self._local.stack = []
        return self._local.stack

    def push(self, token: Token, key: Optional[Any] = None) -> None:
        """Mark a provider as under construction.

        Args:
            token: The token being resolved, reported in the dependency chain.
            key: Identity of the provider. Defaults to the token.

        Raises:
            CircularDependencyError: If the provider is already under construction.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.push(PostService)
            >>> detector.push(PostRepository)
            >>> detector.push(PostService)  # Raises CircularDependencyError
        """
        key = token if key is None else key
        stack = self._get_stack()
        keys = [entry_key for entry_key, _ in stack]

        if key in keys:
            cycle_start_index = keys.index(key)
            cycle = [entry_token for _, entry_token in stack[cycle_start_index:]] + [token]
            raise CircularDependencyError(cycle)

        stack.append((key, token))

    def pop(self) -> None:
        """Remove the most recent entry, once its resolution completed or failed."""
        stack = self._get_stack()
        if stack:
            stack.pop()

    @property
    def depth(self) -> int:
        return len(self._get_stack())

    def clear(self) -> None:
        """Clear the entire resolution stack."""
        if hasattr(self._local, "stack"):
            self._local.stack.clear()
