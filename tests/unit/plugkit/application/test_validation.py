"""Unit tests for the pydantic validator."""

from typing import Annotated

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from plugkit.application.validation import ROOT_FIELD, PydanticValidator, errors_from_pydantic, type_adapter
from plugkit.domain import IValidator


class CreatePost(BaseModel):
    title: str = Field(min_length=3)
    tags: list = Field(default_factory=list)


class TestErrorsFromPydantic:
    """Test cases for errors_from_pydantic."""

    def test_scalar_error_uses_field(self):
        """Test that location-less errors use the given field name."""
        try:
            TypeAdapter(int).validate_python("abc")
        except PydanticValidationError as e:
            errors = errors_from_pydantic(e, "post_id")

        assert list(errors) == ["post_id"]

    def test_scalar_error_without_field(self):
        """Test that location-less errors default to the root field."""
        try:
            TypeAdapter(int).validate_python("abc")
        except PydanticValidationError as e:
            errors = errors_from_pydantic(e)

        assert list(errors) == [ROOT_FIELD]

    def test_model_errors_use_location(self):
        """Test that model errors are keyed by field location."""
        try:
            CreatePost.model_validate({})
        except PydanticValidationError as e:
            errors = errors_from_pydantic(e, "payload")

        assert errors == {"title": "Field required"}


class TestTypeAdapter:
    """Test cases for the cached type adapter."""

    def test_hashable_annotations_are_cached(self):
        """Test that the same adapter is returned for the same type."""
        assert type_adapter(int) is type_adapter(int)

    def test_annotated_types(self):
        """Test that constrained annotations are supported."""
        adapter = type_adapter(Annotated[int, Field(gt=0)])
        assert adapter.validate_python("5") == 5


class TestPydanticValidator:
    """Test cases for PydanticValidator."""

    def test_implements_interface(self):
        """Test that PydanticValidator implements IValidator."""
        assert isinstance(PydanticValidator(), IValidator)

    def test_valid_value(self):
        """Test that valid values produce no errors."""
        assert PydanticValidator().validate({"title": "Hello"}, CreatePost) == {}

    def test_invalid_value(self):
        """Test that invalid values produce field errors."""
        errors = PydanticValidator().validate({"title": "x"}, CreatePost)

        assert "title" in errors
        assert "at least 3 characters" in errors["title"]

    def test_convert_returns_validated_value(self):
        """Test that convert returns the model instance and no errors."""
        value, errors = PydanticValidator().convert({"title": "Hello"}, CreatePost)

        assert isinstance(value, CreatePost)
        assert errors == {}

    def test_convert_keeps_input_on_errors(self):
        """Test that convert returns the input value alongside the errors."""
        value, errors = PydanticValidator().convert({"title": "x"}, CreatePost)

        assert value == {"title": "x"}
        assert "title" in errors
