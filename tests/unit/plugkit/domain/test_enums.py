"""Unit tests for domain enums."""

import pytest

from plugkit.domain.enums import CompositionPolicy, ContextType, GraphErrorKind, ResponseKind, Scope


class TestScopeEnum:
    """Test cases for the Scope enum."""

    def test_singleton_value(self):
        """Test that SINGLETON has correct string value."""
        assert Scope.SINGLETON.value == "singleton"

    def test_transient_value(self):
        """Test that TRANSIENT has correct string value."""
        assert Scope.TRANSIENT.value == "transient"

    def test_scope_from_value(self):
        """Test that scope can be created from string value."""
        assert Scope("singleton") == Scope.SINGLETON
        assert Scope("transient") == Scope.TRANSIENT

    def test_invalid_scope_value_raises_error(self):
        """Test that invalid scope value raises ValueError."""
        with pytest.raises(ValueError, match="'scoped' is not a valid Scope"):
            Scope("scoped")

    def test_scope_enum_members(self):
        """Test that only singleton and transient scopes exist."""
        assert {member.name for member in Scope} == {"SINGLETON", "TRANSIENT"}

    def test_scope_string_representation(self):
        """Test string representation of scope enums."""
        assert str(Scope.SINGLETON) == "singleton"
        assert str(Scope.TRANSIENT) == "transient"


class TestContextTypeEnum:
    """Test cases for the ContextType enum."""

    def test_context_type_members(self):
        """Test that all context types exist."""
        assert {member.value for member in ContextType} == {"rest", "hook", "none"}

    def test_context_type_compares_to_string(self):
        """Test that context types compare equal to their values."""
        assert ContextType.HOOK == "hook"
        assert str(ContextType.REST) == "rest"


class TestResponseKindEnum:
    """Test cases for the ResponseKind enum."""

    def test_response_kind_members(self):
        """Test that all response kinds exist."""
        assert {member.value for member in ResponseKind} == {"http", "structured", "error_page"}

    def test_response_kind_string_representation(self):
        """Test string representation of response kinds."""
        assert str(ResponseKind.ERROR_PAGE) == "error_page"


class TestGraphErrorKindEnum:
    """Test cases for the GraphErrorKind enum."""

    def test_graph_error_kinds(self):
        """Test that every graph failure reason exists."""
        expected = {
            "circular_dependency",
            "unresolved_token",
            "duplicate_provider",
            "invalid_export",
            "invalid_module",
            "duplicate_global",
        }
        assert {member.value for member in GraphErrorKind} == expected


class TestCompositionPolicyEnum:
    """Test cases for the CompositionPolicy enum."""

    def test_composition_policy_from_value(self):
        """Test that policies can be created from string values."""
        assert CompositionPolicy("concatenate") == CompositionPolicy.CONCATENATE
        assert CompositionPolicy("deduplicate") == CompositionPolicy.DEDUPLICATE
        assert CompositionPolicy("unique") == CompositionPolicy.UNIQUE
