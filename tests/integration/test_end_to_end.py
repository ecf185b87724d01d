"""
End-to-end integration tests for the pymvel front end.

These tests run source text through the whole pipeline: lexing, parsing,
translation against a registry, and rendering of the evaluator class a
host would compile.
"""

import pytest

from pymvel import transpile
from pymvel.compiler import (
    Declaration,
    EvaluatorSource,
    build_registry,
    render_evaluator_source,
)
from pymvel.utils.errors import ParserError, RegistryError

DECIMALS = {"a": "java.math.BigDecimal", "b": "java.math.BigDecimal"}


class TestTranspile:
    """Tests for the one-call pipeline."""

    def test_expression_with_declared_types(self, person_types):
        unit = transpile("p.age += 10", {"p": "Person"}, types=person_types)
        assert unit.body == "p.setAge(p.getAge() + 10)"
        assert unit.referenced_names == ("p",)
        assert unit.ambiguities == ()

    def test_program_mode_detected(self):
        assert transpile("x = 1; y = x + 1;").body == "x = 1;\ny = x + 1;"

    def test_explicit_mode(self):
        body = transpile("if (x > 1) { y = 2; }", mode="program").body
        assert body == "if (x > 1) {\n    y = 2;\n}"

    def test_declaration_objects(self):
        unit = transpile("names[0]", [Declaration.of("names", "java.util.List", "String")])
        assert unit.body == "names.get(0)"

    def test_repeatable(self, person_types):
        source = 'person[age > 18, name == "Bob"] && person.salary > 100B'
        first = transpile(source, {"person": "Person"}, types=person_types)
        second = transpile(source, {"person": "Person"}, types=person_types)
        assert first == second

    def test_syntax_error_reports_location(self):
        with pytest.raises(ParserError) as exc_info:
            transpile("a +\n  * b", filename="rule.mvel")
        assert exc_info.value.line == 2
        assert exc_info.value.location.filename == "rule.mvel"

    def test_conflicting_declarations(self):
        with pytest.raises(RegistryError):
            transpile("x", [Declaration.of("x", "int"), Declaration.of("x", "long")])


class TestEvaluatorPipeline:
    """Tests that take translated text all the way to a class body."""

    def test_expression_class(self):
        registry = build_registry(DECIMALS)
        unit = transpile("a + b", DECIMALS)
        source = EvaluatorSource.for_unit(unit, registry, "Total", "java.math.BigDecimal")
        text = render_evaluator_source(source)

        assert "public class Total implements org.mvel3.Evaluator<" in text
        assert '        java.math.BigDecimal a = ((java.math.BigDecimal) __context.get("a"));' in text
        assert "        return a.add(b, java.math.MathContext.DECIMAL128);" in text
        assert "import java.math.MathContext;" in text

    def test_program_class(self, person_types):
        bindings = {"p": "Person", "flag": "boolean"}
        registry = build_registry(bindings, person_types)
        unit = transpile(
            'if (flag) { p.name = "Bob"; }', bindings, mode="program", types=person_types
        )
        source = EvaluatorSource.for_unit(
            unit, registry, "Rename", "java.lang.Void", is_program=True
        )
        text = render_evaluator_source(source)

        assert source.declarations[0].name == "flag"
        assert (
            "        if (flag) {\n"
            '            p.setName("Bob");\n'
            "        }\n"
            "        return null;\n"
        ) in text

    def test_only_referenced_names_are_declared(self):
        bindings = {"a": "int", "unused": "String"}
        unit = transpile("a * 2", bindings)
        source = EvaluatorSource.for_unit(unit, build_registry(bindings))
        assert [d.name for d in source.declarations] == ["a"]
        assert source.class_name == "GeneratedEvaluator"

    def test_shadowed_binding_is_declared_once(self):
        bindings = {"x": "int"}
        unit = transpile("int x = 2; return x;", bindings, mode="program")
        source = EvaluatorSource.for_unit(
            unit, build_registry(bindings), return_type="java.lang.Integer", is_program=True
        )
        text = render_evaluator_source(source)

        assert source.declarations == ()
        assert text.count("int x =") == 1
