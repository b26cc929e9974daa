"""Application layer - Validator collaborator backed by pydantic."""

from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from plugkit.domain import IValidator

ROOT_FIELD = "__root__"


def errors_from_pydantic(error: PydanticValidationError, field: Optional[str] = None) -> Dict[str, str]:
    """Flatten a pydantic validation error into a field to message map.

    Args:
        error: The pydantic error.
        field: Name used for errors without a location (scalar values).

    Returns:
        First message for each dotted location.
    """
    errors: Dict[str, str] = {}
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        key = location or field or ROOT_FIELD
        errors.setdefault(key, detail.get("msg", "Invalid value"))
    return errors


@lru_cache(maxsize=256)
def _cached_type_adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def type_adapter(annotation: Any) -> TypeAdapter:
    """``TypeAdapter`` for an annotation, cached when the annotation is hashable."""
    try:
        return _cached_type_adapter(annotation)
    except TypeError:
        return TypeAdapter(annotation)


class PydanticValidator(IValidator):
    """Validates values against a rule set expressed as a type.

    The rule set is anything pydantic can validate against: a ``BaseModel``
    subclass, a ``TypedDict``, an ``Annotated`` constrained type, and so on.

    Example:
        >>> class CreatePost(BaseModel):
        ...     title: str = Field(min_length=3)
        >>> PydanticValidator().validate({"title": "x"}, CreatePost)
        {'title': 'String should have at least 3 characters'}
    """

    def validate(self, value: Any, rules: Any) -> Dict[str, str]:
        return self.convert(value, rules)[1]

    def convert(self, value: Any, rules: Any) -> Tuple[Any, Dict[str, str]]:
        """Validate a value and return the validated value with the errors.

        The validated value is the pydantic output (a model instance for model
        rules), or the input value unchanged when there are errors.
        """
        try:
            return type_adapter(rules).validate_python(value), {}
        except PydanticValidationError as e:
            return value, errors_from_pydantic(e)
