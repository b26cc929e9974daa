"""Application layer - Argument binding and the pipe phase."""

import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, get_type_hints

from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticSchemaGenerationError

from plugkit.application.validation import errors_from_pydantic, type_adapter
from plugkit.domain import ArgumentMetadata, IPipe, ValidationError

logger = logging.getLogger(__name__)

_MISSING = object()


class ParamOptions:
    """Per-parameter configuration read from ``param`` metadata."""

    __slots__ = ("pipes", "key", "coerce")

    def __init__(self, pipes: Sequence[IPipe] = (), key: Optional[str] = None, coerce: bool = True) -> None:
        self.pipes = list(pipes)
        self.key = key
        self.coerce = coerce


class PipesConsumer:
    """Binds raw arguments to handler parameters and runs the pipe chains.

    For every declared parameter the pipes run in order global, class, method,
    then parameter-specific, each output feeding the next pipe. Annotated
    parameters without parameter-specific pipes are then coerced to their
    annotation with pydantic's lax validation, unless coercion is disabled.

    Attributes:
        _coerce: Whether implicit coercion is enabled at all.
    """

    def __init__(self, coerce: bool = True) -> None:
        self._coerce = coerce

    def transform_arguments(
        self,
        handler: Callable[..., Any],
        raw_args: Any,
        pipes: Sequence[IPipe],
        options: Mapping[str, ParamOptions],
    ) -> Tuple[List[Any], Dict[str, Any]]:
        """Produce the positional and keyword arguments for the handler.

        Args:
            handler: The bound handler method.
            raw_args: Mapping of raw values by key, or a sequence of positional values.
            pipes: Global, class and method pipes, in that order.
            options: Parameter options by parameter name.

        Returns:
            Positional-only arguments and keyword arguments.

        Raises:
            ValidationError: If a pipe rejects a value or coercion fails.
        """
        signature = inspect.signature(handler)
        type_hints = _type_hints(handler)

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        positional_values = list(raw_args) if _is_sequence(raw_args) else None

        index = 0
        for name, parameter in signature.parameters.items():
            if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            option = options.get(name) or ParamOptions()
            annotation = type_hints.get(name, parameter.annotation)
            if annotation is inspect.Parameter.empty:
                annotation = None
            metadata = ArgumentMetadata(
                name=name,
                index=index,
                annotation=annotation,
                key=option.key or name,
                coerce=option.coerce,
            )

            if positional_values is not None:
                value = positional_values[index] if index < len(positional_values) else _MISSING
            else:
                value = raw_args.get(metadata.key, _MISSING) if raw_args is not None else _MISSING
            index += 1

            if value is _MISSING:
                value = None if parameter.default is inspect.Parameter.empty else parameter.default

            try:
                value = self._apply(list(pipes) + option.pipes, value, metadata)
                if self._should_coerce(option, metadata, value, parameter):
                    value = self._coerce_value(value, metadata)
            except ValidationError as e:
                # collect every failing parameter before reporting
                errors.update(e.errors or {metadata.name: e.message})
                continue

            if parameter.kind == inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[name] = value

        if errors:
            logger.debug("Argument validation failed for %s: %s", getattr(handler, "__qualname__", handler), errors)
            raise ValidationError(errors)
        return args, kwargs

    @staticmethod
    def _apply(pipes: Sequence[IPipe], value: Any, metadata: ArgumentMetadata) -> Any:
        for pipe in pipes:
            value = pipe.transform(value, metadata)
        return value

    def _should_coerce(
        self,
        option: ParamOptions,
        metadata: ArgumentMetadata,
        value: Any,
        parameter: inspect.Parameter,
    ) -> bool:
        if not (self._coerce and option.coerce) or option.pipes or metadata.annotation is None:
            return False
        # an untouched default is trusted as-is
        return not (parameter.default is not inspect.Parameter.empty and value is parameter.default)

    @staticmethod
    def _coerce_value(value: Any, metadata: ArgumentMetadata) -> Any:
        try:
            adapter = type_adapter(metadata.annotation)
        except PydanticSchemaGenerationError:
            # not a type pydantic knows how to validate, pass through
            return value
        try:
            return adapter.validate_python(value)
        except PydanticValidationError as e:
            raise ValidationError(errors_from_pydantic(e, metadata.name)) from e


def _is_sequence(raw_args: Any) -> bool:
    return isinstance(raw_args, (list, tuple))


def _type_hints(handler: Callable[..., Any]) -> Dict[str, Any]:
    try:
        return get_type_hints(handler, include_extras=True)
    except Exception:
        return {}
