"""
Unit tests for the name-based disambiguation policy.
"""

import pytest

from pymvel.compiler.policy import DefaultDisambiguationPolicy, DisambiguationPolicy


@pytest.fixture
def policy() -> DefaultDisambiguationPolicy:
    return DefaultDisambiguationPolicy()


class TestMemberClassification:
    """Tests for member name classification."""

    def test_builtin_methods(self, policy):
        assert policy.is_builtin_method("size")
        assert policy.is_builtin_method("getClass")
        assert not policy.is_builtin_method("getName")

    def test_static_members(self, policy):
        assert policy.is_static_member("out")
        assert policy.is_static_member("MAX_VALUE")
        assert not policy.is_static_member("name")

    def test_namespace_segments(self, policy):
        assert policy.is_namespace_segment("java")
        assert policy.is_namespace_segment("util")
        assert not policy.is_namespace_segment("person")

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("nickName", True),
            ("parentPublic", True),
            ("publicName", True),
            ("public", False),
            ("name", False),
        ],
    )
    def test_public_field_names(self, policy, name, expected):
        assert policy.is_public_field_name(name) is expected

    def test_type_names(self, policy):
        assert policy.is_type_name("Person")
        assert not policy.is_type_name("person")

    def test_accessor_and_mutator_names(self, policy):
        assert policy.accessor_name("name") == "getName"
        assert policy.mutator_name("age") == "setAge"


class TestCollectionShapes:
    """Tests for array and map guesses."""

    @pytest.mark.parametrize("text", ["int[]", "valuesArray", "myarray", "x", "a", "rows[0].cells"])
    def test_array_like(self, policy, text):
        assert policy.looks_like_array(text)

    @pytest.mark.parametrize("text", ["names", "values", "person.getName()"])
    def test_not_array_like(self, policy, text):
        assert not policy.looks_like_array(text)

    @pytest.mark.parametrize(
        "text", ["priceMap", "m", "items", "$prices", "order.getItems()", "holder.getBigDecimalMap()"]
    )
    def test_map_like(self, policy, text):
        assert policy.looks_like_map(text)

    def test_array_reading_wins(self, policy):
        """A name matching both shapes is read as an array."""
        assert not policy.looks_like_map("itemsArray")

    def test_not_map_like(self, policy):
        assert not policy.looks_like_map("names")


class TestDecimalText:
    """Tests for numeric literal detection."""

    @pytest.mark.parametrize("text", ["1", "-2.5", ".5", "1e10", "3.0d"])
    def test_decimal_text(self, policy, text):
        assert policy.is_decimal_text(text)

    @pytest.mark.parametrize("text", ["x", "1 + 2", "0x1F", ""])
    def test_not_decimal_text(self, policy, text):
        assert not policy.is_decimal_text(text)


class TestCustomPolicy:
    """Tests for policy configuration."""

    def test_custom_iteration_variable(self):
        policy = DefaultDisambiguationPolicy(iteration_variable="it")
        assert policy.iteration_variable == "it"

    def test_custom_public_fields(self):
        policy = DefaultDisambiguationPolicy(public_fields=frozenset({"id"}))
        assert policy.is_public_field_name("id")
        assert not policy.is_public_field_name("nickName")

    def test_abstract_policy(self):
        with pytest.raises(TypeError):
            DisambiguationPolicy()
