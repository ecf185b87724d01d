"""
Unit tests for declarations and the Registry.
"""

import pytest

from pymvel.compiler.registry import (
    Declaration,
    Registry,
    TypeDescriptor,
    TypeInfo,
)
from pymvel.utils.errors import RegistryError


class TestTypeDescriptor:
    """Tests for type descriptors."""

    def test_parse_generic_type(self):
        descriptor = TypeDescriptor.parse("Map<String, Integer>")
        assert descriptor.name == "Map"
        assert descriptor.generics == "String, Integer"
        assert str(descriptor) == "Map<String, Integer>"

    def test_parse_plain_type(self):
        assert TypeDescriptor.parse(" int ") == TypeDescriptor("int")

    def test_malformed_type(self):
        with pytest.raises(RegistryError, match="Malformed type"):
            TypeDescriptor.parse("List>String<")

    def test_nested_type_arguments(self):
        descriptor = TypeDescriptor.parse("Map<String, List<Integer>>")
        arguments = descriptor.type_arguments
        assert [str(a) for a in arguments] == ["String", "List<Integer>"]

    def test_element_types(self):
        """Arrays, lists and maps expose the type of their elements."""
        assert TypeDescriptor("int[]").element_type == TypeDescriptor("int")
        assert TypeDescriptor.parse("List<Person>").element_type == TypeDescriptor("Person")
        assert TypeDescriptor.parse("Map<String, BigDecimal>").element_type == TypeDescriptor(
            "BigDecimal"
        )
        assert TypeDescriptor("Person").element_type is None

    def test_shape_predicates(self):
        assert TypeDescriptor.parse("java.util.HashMap<K, V>").is_map
        assert TypeDescriptor("java.util.ArrayList").is_list
        assert TypeDescriptor("java.math.BigDecimal").is_big_decimal
        assert TypeDescriptor("BigInteger").is_big_integer
        assert TypeDescriptor("String").is_string
        assert TypeDescriptor("boolean").is_boolean
        assert not TypeDescriptor("String[]").is_string

    def test_simple_name(self):
        assert TypeDescriptor("java.util.List[]").simple_name == "List"


class TestDeclaration:
    """Tests for declarations."""

    def test_equality_is_structural(self):
        assert Declaration.of("x", "int") == Declaration.of("x", "int")
        assert Declaration.of("x", "int") != Declaration.of("x", "long")

    def test_generics_argument(self):
        declaration = Declaration.of("items", "java.util.List", "String")
        assert str(declaration.type) == "java.util.List<String>"

    def test_generics_in_type_text(self):
        declaration = Declaration.of("items", "List<String>")
        assert declaration.type.generics == "String"


class TestRegistryBuild:
    """Tests for building registries."""

    def test_lookup(self, registry_factory):
        registry = registry_factory({"x": "int"})
        assert registry.lookup("x") == Declaration.of("x", "int")
        assert registry.lookup("y") is None

    def test_identical_duplicates_collapse(self):
        registry = Registry.build([Declaration.of("x", "int"), Declaration.of("x", "int")])
        assert len(registry) == 1

    def test_conflicting_declarations(self):
        with pytest.raises(RegistryError, match="Conflicting declarations for 'x'"):
            Registry.build([Declaration.of("x", "int"), Declaration.of("x", "String")])

    def test_from_mapping(self):
        registry = Registry.from_mapping({"a": "int", "names": "List<String>"})
        assert registry.names == ("a", "names")
        assert "names" in registry

    def test_empty_registry(self):
        registry = Registry.empty()
        assert len(registry) == 0
        assert "x" not in registry

    def test_iteration_yields_declarations(self, registry_factory):
        registry = registry_factory({"a": "int", "b": "long"})
        assert [d.name for d in registry] == ["a", "b"]

    def test_type_infos_are_type_names(self, person_types):
        registry = Registry.build([], person_types, ["java.util.List"])
        assert registry.type_names == ("java.util.List", "Person", "Address")

    def test_dollar_fallback(self, registry_factory):
        """A bare name finds the `$`-prefixed binding."""
        registry = registry_factory({"$temp": "int"})
        assert registry.lookup("temp").name == "$temp"
        assert "temp" in registry


class TestRegistryMembers:
    """Tests for member queries against type descriptions."""

    @pytest.fixture
    def registry(self, registry_factory, person_types):
        return registry_factory({"person": "Person"}, person_types)

    def test_field_type(self, registry):
        person = registry.lookup("person")
        assert registry.field_type(person, "age") == TypeDescriptor("int")
        assert registry.field_type(person, "missing") is None

    def test_field_type_via_accessor_method(self, registry):
        """`isActive()` makes `active` a boolean property."""
        assert registry.field_type(registry.lookup("person"), "active") == TypeDescriptor(
            "boolean"
        )

    def test_field_type_of_unknown_owner(self, registry):
        assert registry.field_type(TypeDescriptor("Unknown"), "x") is None

    def test_type_info_by_simple_name(self, registry):
        assert registry.type_info("com.acme.Person").name == "Person"
        assert registry.type_info("Person[]") is None

    def test_methods(self, registry):
        person = registry.lookup("person")
        assert registry.has_method(person, "fullName")
        assert registry.method_return_type(person, "fullName") == TypeDescriptor("String")
        assert not registry.has_method(person, "nope")

    def test_public_fields(self, registry):
        person = registry.lookup("person")
        assert registry.is_public_field(person, "nickName")
        assert not registry.is_public_field(person, "name")

    def test_member_names(self, registry):
        names = registry.member_names(registry.lookup("person"))
        assert "name" in names
        assert "fullName" in names

    def test_resolve_type_name(self):
        registry = Registry.build([], (), ["java.util.List", "java.awt.List", "java.util.Map"])
        assert registry.resolve_type_name("Map") == "java.util.Map"
        assert registry.resolve_type_name("List") is None
        assert registry.resolve_type_name("java.util.Map") == "java.util.Map"

    def test_conflicting_type_descriptions(self):
        with pytest.raises(RegistryError, match="Conflicting descriptions"):
            Registry.build(
                [],
                [TypeInfo.of("Person", fields={"a": "int"}), TypeInfo.of("Person")],
            )
