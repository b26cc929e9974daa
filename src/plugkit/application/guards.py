"""Application layer - Guard phase."""

import logging
from typing import Sequence

from plugkit.application.execution_context import ExecutionContext
from plugkit.domain import IGuard, UnauthorizedError

logger = logging.getLogger(__name__)


class GuardsConsumer:
    """Evaluates guards in order and stops at the first rejection.

    A guard returning ``False`` is reported as ``UnauthorizedError``; a guard
    raising propagates its own error. Both lead to the exception phase.
    """

    def can_activate(self, guards: Sequence[IGuard], context: ExecutionContext) -> None:
        """Run every guard until one rejects.

        Raises:
            UnauthorizedError: If a guard returns False.
        """
        for guard in guards:
            if not guard.can_activate(context):
                guard_name = type(guard).__name__
                logger.warning(
                    "Guard %s rejected %s.%s", guard_name, _name(context.get_class()), context.get_handler_name()
                )
                raise UnauthorizedError(reason=f"Rejected by {guard_name}")


def _name(cls: object) -> str:
    return getattr(cls, "__name__", "?")
