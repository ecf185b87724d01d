"""
Unit tests for the evaluator contract and generated class text.
"""

import pytest

from pymvel.compiler.evaluator import (
    DEFAULT_IMPORTS,
    Evaluator,
    EvaluatorSource,
    HostCompiler,
    render_evaluator_source,
)
from pymvel.compiler.registry import Declaration, Registry
from pymvel.compiler.translator import TranslatedUnit
from pymvel.utils.errors import EvaluatorNotImplementedError, HostCompileError


class ContextOnlyEvaluator(Evaluator):
    """Evaluator that only supports the context arity."""

    def eval_context(self, context):
        return context["x"] + 1


class RecordingCompiler(HostCompiler):
    """Host compiler that records sources instead of compiling them."""

    def __init__(self):
        self.sources = []

    def compile(self, source):
        self.sources.append(source)
        return ContextOnlyEvaluator()


class TestEvaluatorArities:
    """Tests for evaluator dispatch."""

    def test_supported_arity(self):
        assert ContextOnlyEvaluator().eval({"x": 1}) == 2

    def test_unsupported_root_arity(self):
        evaluator = ContextOnlyEvaluator()
        with pytest.raises(EvaluatorNotImplementedError) as exc_info:
            evaluator.eval({"x": 1}, object())
        assert "ContextOnlyEvaluator.eval(context, root)" in str(exc_info.value)

    def test_root_only_arity(self):
        with pytest.raises(NotImplementedError):
            ContextOnlyEvaluator().eval_root(object())

    def test_none_is_a_valid_root(self):
        """Passing None as the root selects the two-argument form."""
        with pytest.raises(EvaluatorNotImplementedError, match="eval\\(context, root\\)"):
            ContextOnlyEvaluator().eval({"x": 1}, None)


class TestEvaluatorSource:
    """Tests for evaluator source construction."""

    def test_qualified_name(self):
        assert EvaluatorSource("Rule1", "x").qualified_name == "org.mvel3.Rule1"

    def test_for_unit_declares_referenced_names(self):
        registry = Registry.from_mapping({"a": "int", "b": "String", "unused": "long"})
        unit = TranslatedUnit("b + a", ("b", "a"))
        source = EvaluatorSource.for_unit(unit, registry, "Rule1", "java.lang.String")
        assert [d.name for d in source.declarations] == ["b", "a"]
        assert source.body == "b + a"
        assert source.imports == DEFAULT_IMPORTS


class TestRenderEvaluatorSource:
    """Tests for the generated class text."""

    def test_expression_class(self):
        source = EvaluatorSource(
            "Rule1",
            "a + 1",
            return_type="java.lang.Integer",
            declarations=(Declaration.of("a", "int"),),
            imports=("java.util.*",),
        )
        assert render_evaluator_source(source) == (
            "package org.mvel3;\n"
            "\n"
            "import java.util.*;\n"
            "\n"
            "public class Rule1 implements org.mvel3.Evaluator<java.util.Map<String, Object>, "
            "java.lang.Void, java.lang.Integer> {\n"
            "\n"
            "    public java.lang.Integer eval(java.util.Map<String, Object> __context) {\n"
            '        int a = ((int) __context.get("a"));\n'
            "        return a + 1;\n"
            "    }\n"
            "}\n"
        )

    def test_program_class_returns_null(self):
        source = EvaluatorSource(
            "Rule2",
            "if (a) {\n    b();\n}",
            return_type="java.lang.Void",
            imports=(),
            is_program=True,
        )
        text = render_evaluator_source(source)
        assert "        if (a) {\n            b();\n        }\n        return null;\n" in text
        assert "import" not in text

    def test_generic_declaration(self):
        source = EvaluatorSource(
            "Rule3", "names.size()", declarations=(Declaration.of("names", "List<String>"),)
        )
        assert (
            '        List<String> names = ((List<String>) __context.get("names"));'
            in render_evaluator_source(source)
        )


class TestHostCompiler:
    """Tests for the host compiler hand-off."""

    def test_compile_unit_builds_source(self):
        compiler = RecordingCompiler()
        registry = Registry.from_mapping({"x": "int"})
        evaluator = compiler.compile_unit(TranslatedUnit("x + 1", ("x",)), registry, "Rule4")
        assert evaluator.eval({"x": 41}) == 42
        assert compiler.sources[0].class_name == "Rule4"
        assert compiler.sources[0].declarations == (Declaration.of("x", "int"),)

    def test_host_compile_error_lists_details(self):
        error = HostCompileError("Compilation failed", "class X {}", ["line 1: ';' expected"])
        assert str(error) == "Compilation failed\n  - line 1: ';' expected"
        assert error.source_text == "class X {}"
