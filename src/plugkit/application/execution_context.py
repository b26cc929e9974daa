"""Application layer - Per-invocation execution context."""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Type

from plugkit.domain import ContextType, HookContext, PipelineError, RestContext


class ExecutionContext:
    """View of the invocation being processed.

    Holds the REST snapshot when the invocation came from an HTTP request,
    and a LIFO stack of hook snapshots for hook-bound handlers, which may be
    nested (a handler firing another hook) or run inside a REST invocation.

    Attributes:
        _rest_context: Snapshot of the HTTP invocation, if any.
        _hook_stack: Active hook snapshots, innermost last.
        _expects_json: Whether a non-HTTP caller expects structured data.
    """

    def __init__(self, rest_context: Optional[RestContext] = None, expects_json: bool = False) -> None:
        self._rest_context = rest_context
        self._hook_stack: List[HookContext] = []
        self._expects_json = expects_json

    @property
    def expects_json(self) -> bool:
        return self._expects_json

    @property
    def hook_depth(self) -> int:
        return len(self._hook_stack)

    def switch_to_rest_context(self) -> Optional[RestContext]:
        """The HTTP snapshot, or None when the invocation did not come from a request."""
        return self._rest_context

    def switch_to_hook_context(self) -> Optional[HookContext]:
        """The innermost active hook snapshot, or None outside hook handlers."""
        return self._hook_stack[-1] if self._hook_stack else None

    def push_hook_context(self, hook_context: HookContext) -> None:
        self._hook_stack.append(hook_context)

    def pop_hook_context(self) -> HookContext:
        """Remove the innermost hook snapshot.

        Raises:
            PipelineError: If no hook snapshot is active.
        """
        if not self._hook_stack:
            raise PipelineError("No hook context to pop")
        return self._hook_stack.pop()

    @contextmanager
    def hook_scope(self, hook_context: HookContext) -> Iterator["ExecutionContext"]:
        """Push a hook snapshot for the duration of a block, popping it even on error.

        Example:
            >>> with context.hook_scope(HookContext(hook_name="init")):
            ...     runner.run(instance, "on_init", [], context)
        """
        self.push_hook_context(hook_context)
        try:
            yield self
        finally:
            self.pop_hook_context()

    def get_type(self) -> ContextType:
        """Boundary the context currently represents. The innermost hook wins over REST."""
        if self._hook_stack:
            return ContextType.HOOK
        if self._rest_context is not None:
            return ContextType.REST
        return ContextType.NONE

    def get_class(self) -> Optional[Type]:
        """Controller class targeted by the current boundary."""
        hook_context = self.switch_to_hook_context()
        if hook_context is not None:
            return hook_context.controller_type
        if self._rest_context is not None:
            return self._rest_context.controller_type
        return None

    def get_handler_name(self) -> Optional[str]:
        """Name of the controller method targeted by the current boundary."""
        hook_context = self.switch_to_hook_context()
        if hook_context is not None:
            return hook_context.method_name
        if self._rest_context is not None:
            return self._rest_context.method_name
        return None
