"""
Unit tests for the pymvel Translator (expression forms).
"""

import pytest

from pymvel.compiler.parser import parse
from pymvel.compiler.registry import Registry, TypeInfo
from pymvel.compiler.translator import (
    UNRESOLVED_SAFE_NAVIGATION,
    TranslatorOptions,
    translate,
)
from pymvel.utils.diagnostics import DiagnosticLevel, ErrorCode

BIG_DECIMAL = "java.math.BigDecimal"


class TestLiterals:
    """Tests for literal translation."""

    @pytest.mark.parametrize("source", ["42", "true", "null", '"hi"', "'a'", "3.5"])
    def test_verbatim_literals(self, translate_source, source):
        assert translate_source(source).body == source

    def test_single_quoted_string(self, translate_source):
        assert translate_source("'hello'").body == '"hello"'

    def test_decimal_unit(self, translate_source):
        assert translate_source("100B").body == 'new BigDecimal("100")'

    def test_integer_unit(self, translate_source):
        assert translate_source("7I").body == 'new BigInteger("7")'

    def test_unknown_unit_is_kept(self, translate_source):
        unit = translate_source("10litres")
        assert unit.body == "10litres"
        assert unit.ambiguities[0].code == ErrorCode.W0304

    def test_empty_and_nil(self, translate_source):
        assert translate_source("empty").body == "Collections.emptyList()"
        assert translate_source("nil").body == "null"
        assert translate_source("undefined").body == "null"

    def test_list_literal(self, translate_source):
        assert translate_source("[1, 2, 3]").body == "List.of(1, 2, 3)"
        assert translate_source("[]").body == "List.of()"

    def test_map_literal(self, translate_source):
        assert translate_source("[a: 1, b: 2]").body == 'Map.of("a", 1, "b", 2)'
        assert translate_source("[:]").body == "Map.of()"
        assert translate_source("{}").body == "Map.of()"

    def test_large_map_literal_uses_entries(self, translate_source):
        source = "[" + ", ".join(f"k{i}: {i}" for i in range(11)) + "]"
        body = translate_source(source).body
        assert body.startswith('Map.ofEntries(Map.entry("k0", 0), ')
        assert body.count("Map.entry(") == 11


class TestOperators:
    """Tests for operator translation and grouping."""

    def test_nested_operations_are_grouped(self, translate_source):
        assert translate_source("1 + 2 * 3").body == "1 + (2 * 3)"

    def test_parentheses_preserved(self, translate_source):
        assert translate_source("(1 + 2) * 3").body == "(1 + 2) * 3"

    def test_power(self, translate_source):
        assert translate_source("2 ** 3").body == "Math.pow(2, 3)"

    def test_logical_grouping(self, translate_source):
        assert translate_source("a && b || c").body == "(a && b) || c"

    def test_negation(self, translate_source):
        assert translate_source("!done").body == "!done"

    def test_conditional(self, translate_source):
        assert translate_source('a > 1 ? "x" : "y"').body == '(a > 1) ? "x" : "y"'

    def test_cast(self, translate_source):
        assert translate_source("(int) x").body == "(int) x"

    def test_contains(self, translate_source):
        assert translate_source('names contains "x"').body == 'names.contains("x")'

    def test_contains_on_map(self, translate_source):
        unit = translate_source('names contains "x"', {"names": "Map<String, Integer>"})
        assert unit.body == 'names.containsKey("x")'

    def test_in(self, translate_source):
        assert translate_source('"x" in names').body == 'names.contains("x")'

    def test_similarity(self, translate_source):
        assert translate_source("a strsim b").body == "StringUtils.strsim(a, b)"
        assert translate_source("a soundslike b").body == "StringUtils.soundslike(a, b)"

    def test_lambda_and_method_reference(self, translate_source):
        source = "names.forEach(n -> System.out.println(n))"
        assert translate_source(source).body == source
        assert translate_source("String::valueOf").body == "String::valueOf"

    def test_generic_method_reference(self, translate_source):
        body = translate_source("names.stream().map(List<String>::size)").body
        assert body == "names.stream().map(List<String>::size)"

    def test_object_creation(self, translate_source):
        assert translate_source("new ArrayList<>()").body == "new ArrayList<>()"


class TestArbitraryPrecision:
    """Tests for BigDecimal and BigInteger arithmetic."""

    @pytest.fixture
    def decimals(self):
        return {"a": BIG_DECIMAL, "b": BIG_DECIMAL}

    def test_addition(self, translate_source, decimals):
        body = translate_source("a + b", decimals).body
        assert body == "a.add(b, java.math.MathContext.DECIMAL128)"

    def test_literal_is_promoted(self, translate_source, decimals):
        body = translate_source("a * 2", decimals).body
        assert body == 'a.multiply(new BigDecimal("2"), java.math.MathContext.DECIMAL128)'

    def test_comparison(self, translate_source, decimals):
        assert translate_source("a > b", decimals).body == "a.compareTo(b) > 0"

    def test_big_integer_modulo(self, translate_source):
        body = translate_source("i % 3", {"i": "java.math.BigInteger"}).body
        assert body == 'i.mod(new BigInteger("3"))'

    def test_big_decimal_power(self, translate_source, decimals):
        body = translate_source("a ** 2", decimals).body
        assert body == "a.pow(2, java.math.MathContext.DECIMAL128)"

    def test_big_integer_power(self, translate_source):
        assert translate_source("i ** 3", {"i": "java.math.BigInteger"}).body == "i.pow(3)"

    def test_big_decimal_exponent(self, translate_source, decimals):
        body = translate_source("n ** a", {"n": "double", **decimals}).body
        assert body == "Math.pow(n, a.doubleValue())"

    def test_power_assignment(self, translate_source, decimals):
        body = translate_source("a **= 2", decimals).body
        assert body == "a = a.pow(2, java.math.MathContext.DECIMAL128)"

    def test_power_assignment_to_property(self, translate_source, person_types):
        unit = translate_source("p.salary **= 2", {"p": "Person"}, types=person_types)
        assert unit.body == (
            "p.setSalary(p.getSalary().pow(2, java.math.MathContext.DECIMAL128))"
        )

    def test_string_concatenation_untouched(self, translate_source):
        unit = translate_source("s + a", {"s": "String", "a": BIG_DECIMAL})
        assert unit.body == "s + a"


class TestPropertyAccess:
    """Tests for member reads."""

    def test_public_field(self, translate_source):
        foo = TypeInfo.of("Foo", public_fields={"nickName": "String"})
        unit = translate_source("foo.nickName", {"foo": "Foo"}, types=(foo,))
        assert unit.body == "foo.nickName"
        assert unit.ambiguities == ()

    def test_unknown_owner_uses_accessor(self, translate_source):
        unit = translate_source("foo.name")
        assert unit.body == "foo.getName()"
        assert unit.ambiguities[0].code == ErrorCode.W0301

    def test_boolean_accessor(self, translate_source, person_types):
        assert translate_source("p.active", {"p": "Person"}, types=person_types).body == (
            "p.isActive()"
        )

    def test_declared_method(self, translate_source, person_types):
        unit = translate_source("p.fullName", {"p": "Person"}, types=person_types)
        assert unit.body == "p.fullName()"

    def test_string_length(self, translate_source):
        assert translate_source("s.length").body == "s.length()"

    def test_array_length(self, translate_source):
        assert translate_source("arr.length", {"arr": "int[]"}).body == "arr.length"

    def test_misspelled_member_suggests(self, translate_source, person_types):
        unit = translate_source("p.nmae", {"p": "Person"}, types=person_types)
        record = unit.ambiguities[0]
        assert record.code == ErrorCode.W0306
        assert "name" in record.suggestions
        assert "did you mean 'name'" in record.to_diagnostic().helps[0]

    def test_safe_navigation(self, translate_source):
        assert translate_source("obj?.field").body == (
            "(obj != null ? obj.getField() : null)"
        )

    def test_nested_safe_navigation_is_unresolved(self, translate_source):
        unit = translate_source("a?.b?.c")
        assert unit.body == UNRESOLVED_SAFE_NAVIGATION
        assert not unit.is_complete
        assert len(unit.unresolved) == 1
        diagnostic = unit.diagnostics()[0]
        assert diagnostic.code == ErrorCode.W0307
        assert diagnostic.level == DiagnosticLevel.WARNING


class TestIndexAccess:
    """Tests for index translation by collection shape."""

    def test_list(self, translate_source):
        assert translate_source("names[0]", {"names": "List<String>"}).body == "names.get(0)"

    def test_array(self, translate_source):
        assert translate_source("arr[0]", {"arr": "int[]"}).body == "arr[0]"

    def test_map_by_name(self, translate_source):
        assert translate_source('priceMap["a"]').body == 'priceMap.get("a")'

    def test_unknown_shape(self, translate_source):
        unit = translate_source("values[0]")
        assert unit.body == "values.get(0)"
        assert unit.ambiguities[0].code == ErrorCode.W0302


class TestAssignment:
    """Tests for assignment rewriting."""

    def test_compound_on_variable(self, translate_source):
        assert translate_source("x += 10", {"x": "int"}).body == "x += 10"

    def test_compound_on_property(self, translate_source, person_types):
        unit = translate_source("p.age += 10", {"p": "Person"}, types=person_types)
        assert unit.body == "p.setAge(p.getAge() + 10)"

    def test_string_coerced_to_int(self, translate_source, person_types):
        unit = translate_source('p.age = "30"', {"p": "Person"}, types=person_types)
        assert unit.body == 'p.setAge(Integer.parseInt("30"))'

    def test_number_promoted_to_big_decimal(self, translate_source, person_types):
        unit = translate_source("p.salary = 100", {"p": "Person"}, types=person_types)
        assert unit.body == 'p.setSalary(new BigDecimal("100"))'

    def test_context_write_back(self, translate_source):
        unit = translate_source(
            "x = 5", {"x": "int"}, options=TranslatorOptions(write_back_context=True)
        )
        assert unit.body == 'context.put("x", 5)'


class TestCollectionQueries:
    """Tests for projections, selections and predicate blocks."""

    def test_projection(self, translate_source):
        assert translate_source("list.{x}").body == (
            "list.stream().map(item -> x).collect(Collectors.toList())"
        )

    def test_selection(self, translate_source):
        assert translate_source("list.?(x > 5)").body == (
            "list.stream().filter(item -> x > 5).collect(Collectors.toList())"
        )

    def test_projection_over_typed_elements(self, translate_source, person_types):
        unit = translate_source(
            "people.{item.name}", {"people": "java.util.List<Person>"}, types=person_types
        )
        assert unit.body == (
            "people.stream().map(item -> item.getName()).collect(Collectors.toList())"
        )

    def test_nested_projection_renames_variable(self, translate_source):
        assert translate_source("groups.{item.{item}}").body == (
            "groups.stream().map(item -> item.stream().map(item1 -> item1)"
            ".collect(Collectors.toList())).collect(Collectors.toList())"
        )

    def test_predicate_block(self, translate_source, person_types):
        unit = translate_source(
            'person[age > 18, name == "Bob"]', {"person": "Person"}, types=person_types
        )
        assert unit.body == '(person.getAge() > 18 && person.getName() == "Bob")'
        assert unit.referenced_names == ("person",)

    def test_empty_predicate_block(self, translate_source):
        assert translate_source("person[]").body == "true"

    def test_mutation_block_chains(self, translate_source):
        unit = translate_source('p{name = "Bob", age = 30}')
        assert unit.body == '(p.setName("Bob").setAge(30))'


class TestMatchingAndCoercion:
    """Tests for definedness, regex matching and coercion."""

    def test_is_defined(self, translate_source):
        assert translate_source("isdef x").body == "(x != null)"

    def test_regex_literal_match(self, translate_source):
        assert translate_source("name ~ ~/[A-Z].*/").body == (
            'Pattern.compile("[A-Z].*").matcher(name).matches()'
        )

    def test_string_pattern_match(self, translate_source):
        assert translate_source('name ~ "abc"').body == 'name.matches("abc")'

    def test_parse_coercion(self, translate_source):
        assert translate_source('"42"#int').body == 'Integer.parseInt("42")'

    def test_string_coercion(self, translate_source):
        assert translate_source("x#String", {"x": "int"}).body == "String.valueOf(x)"

    @pytest.mark.parametrize("declared", [BIG_DECIMAL, "java.math.BigInteger", "Person"])
    def test_typed_value_to_string(self, translate_source, declared):
        assert translate_source("v#String", {"v": declared}).body == "String.valueOf(v)"

    def test_untyped_value_to_string_is_cast(self, translate_source):
        assert translate_source("v#String").body == "((String) v)"

    def test_reference_coercion_is_cast(self, translate_source):
        assert translate_source("obj#Person").body == "((Person) obj)"

    def test_text_to_big_decimal(self, translate_source):
        assert translate_source("s#BigDecimal", {"s": "String"}).body == "new BigDecimal(s)"


class TestReferencedNames:
    """Tests for referenced name collection."""

    def test_first_reference_order(self, translate_source):
        unit = translate_source("b + a + b", {"a": "int", "b": "int"})
        assert unit.referenced_names == ("b", "a")

    def test_undeclared_names_excluded(self, translate_source):
        assert translate_source("a + z", {"a": "int"}).referenced_names == ("a",)

    def test_dollar_binding(self, translate_source):
        unit = translate_source("temp + 1", {"$temp": "int"})
        assert unit.body == "$temp + 1"
        assert unit.referenced_names == ("$temp",)

    def test_lambda_parameter_shadows_binding(self, translate_source):
        unit = translate_source(
            "lst.stream().map(x -> x + 1)", {"x": "int", "lst": "java.util.List<Integer>"}
        )
        assert unit.referenced_names == ("lst",)

    def test_binding_outside_lambda_is_kept(self, translate_source):
        unit = translate_source(
            "lst.stream().map(y -> y + x)", {"x": "int", "lst": "java.util.List<Integer>"}
        )
        assert unit.referenced_names == ("lst", "x")

    def test_projection_element_shadows_binding(self, translate_source):
        unit = translate_source("list.{item}", {"item": "String", "list": "java.util.List"})
        assert unit.referenced_names == ("list",)

    def test_pattern_binding_shadows_binding(self, translate_source):
        unit = translate_source(
            "o instanceof String s && s.isEmpty()", {"o": "Object", "s": "String"}
        )
        assert unit.referenced_names == ("o",)


class TestTranslationProperties:
    """Tests for purity and result records."""

    def test_translation_is_repeatable(self):
        tree = parse("foo.name + values[0]")
        registry = Registry.empty()
        assert translate(tree, registry) == translate(tree, registry)

    def test_records_do_not_leak_between_calls(self):
        registry = Registry.empty()
        translate(parse("foo.name"), registry)
        assert translate(parse("1 + 2"), registry).ambiguities == ()

    def test_ambiguity_message(self, translate_source):
        record = translate_source("foo.name").ambiguities[0]
        assert record.message.startswith("field-access: 'foo.name' translated as")
        diagnostic = record.to_diagnostic()
        assert diagnostic.level == DiagnosticLevel.NOTE
        assert "declare the receiver's type" in diagnostic.helps[0]

    def test_complete_unit_has_no_warnings(self, translate_source):
        unit = translate_source("1 + 2")
        assert unit.is_complete
        assert unit.diagnostics() == []
