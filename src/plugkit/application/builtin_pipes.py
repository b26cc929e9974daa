"""Application layer - Built-in pipes."""

from typing import Any, Optional

from pydantic import BaseModel
from pydantic.errors import PydanticSchemaGenerationError

from plugkit.application.validation import ROOT_FIELD, PydanticValidator, type_adapter
from plugkit.domain import ArgumentMetadata, IPipe, IValidator, ValidationError


class TrimPipe(IPipe):
    """Strips surrounding whitespace from strings, leaves other values untouched."""

    def transform(self, value: Any, metadata: ArgumentMetadata) -> Any:
        return value.strip() if isinstance(value, str) else value


class ParseIntPipe(IPipe):
    def transform(self, value: Any, metadata: ArgumentMetadata) -> int:
        if isinstance(value, bool):
            raise ValidationError({metadata.name: "Validation failed (numeric string is expected)"})
        try:
            return int(str(value).strip())
        except (TypeError, ValueError):
            raise ValidationError({metadata.name: "Validation failed (numeric string is expected)"}) from None


class ParseFloatPipe(IPipe):
    def transform(self, value: Any, metadata: ArgumentMetadata) -> float:
        if isinstance(value, bool):
            raise ValidationError({metadata.name: "Validation failed (numeric string is expected)"})
        try:
            return float(str(value).strip())
        except (TypeError, ValueError):
            raise ValidationError({metadata.name: "Validation failed (numeric string is expected)"}) from None


class ParseBoolPipe(IPipe):
    _TRUE = ("true", "1", "yes", "on")
    _FALSE = ("false", "0", "no", "off")

    def transform(self, value: Any, metadata: ArgumentMetadata) -> bool:
        if isinstance(value, bool):
            return value
        normalized = str(value).strip().lower()
        if normalized in self._TRUE:
            return True
        if normalized in self._FALSE:
            return False
        raise ValidationError({metadata.name: "Validation failed (boolean string is expected)"})


class DefaultValuePipe(IPipe):
    """Replaces a missing (None or empty string) value with a default."""

    def __init__(self, default: Any) -> None:
        self.default = default

    def transform(self, value: Any, metadata: ArgumentMetadata) -> Any:
        if value is None or value == "":
            return self.default
        return value


class ValidationPipe(IPipe):
    """Validates an argument through an ``IValidator`` collaborator.

    The rule set is the one given to the pipe, or the parameter annotation.
    When the rule set is a pydantic model the validated model instance is
    returned, otherwise the value passes through unchanged. With the default
    validator, annotations pydantic has no schema for (requests, services)
    are not validated.

    Args:
        rules: Rule set handed to the validator.
        validator: Validator collaborator, ``PydanticValidator`` by default.
    """

    def __init__(self, rules: Any = None, validator: Optional[IValidator] = None) -> None:
        self.rules = rules
        self.validator = validator or PydanticValidator()

    def transform(self, value: Any, metadata: ArgumentMetadata) -> Any:
        rules = self.rules if self.rules is not None else metadata.annotation
        if rules is None:
            return value

        if isinstance(self.validator, PydanticValidator):
            if self.rules is None and not _has_schema(rules):
                return value
            validated, errors = self.validator.convert(value, rules)
        else:
            validated, errors = None, self.validator.validate(value, rules)

        if errors:
            raise ValidationError(
                {(metadata.name if field == ROOT_FIELD else field): message for field, message in errors.items()}
            )

        if isinstance(rules, type) and issubclass(rules, BaseModel):
            return validated if validated is not None else type_adapter(rules).validate_python(value)
        return value


def _has_schema(annotation: Any) -> bool:
    try:
        type_adapter(annotation)
    except PydanticSchemaGenerationError:
        return False
    return True
