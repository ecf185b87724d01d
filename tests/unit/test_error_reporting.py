"""
Unit tests for error types and rich diagnostics.
"""

from pymvel.utils.diagnostics import (
    Diagnostic,
    DiagnosticEmitter,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    diagnostic,
    levenshtein_distance,
    suggest_similar,
)
from pymvel.utils.errors import ParserError, SourceLocation


class TestErrorFormatting:
    """Tests for error message formatting."""

    def test_location_and_caret(self):
        error = ParserError("Unexpected ')'", SourceLocation(1, 5), "a + )")
        assert str(error) == "[1:5] Unexpected ')'\n    a + )\n        ^"

    def test_message_without_source(self):
        error = ParserError("Unexpected end of input", SourceLocation(2, 1, 10, "rule.mvel"))
        assert str(error) == "[rule.mvel:2:1] Unexpected end of input"
        assert (error.line, error.column) == (2, 1)

    def test_missing_location(self):
        error = ParserError("broken")
        assert str(error) == "broken"
        assert error.line == 0


class TestDiagnosticRendering:
    """Tests for diagnostic rendering."""

    def test_render_without_color(self):
        span = SourceSpan.from_location(1, 6, 4, "rule.mvel")
        rendered = (
            diagnostic(ErrorCode.W0301, DiagnosticLevel.WARNING, "assumed accessor", span)
            .help("declare 'user'")
            .build()
            .render('user.name == "x"', use_color=False)
        )
        assert rendered.splitlines() == [
            "warning[W0301]: assumed accessor",
            "  --> rule.mvel:1:6",
            "   |",
            '  1 | user.name == "x"',
            "   |      ^^^^",
            "   |",
            "   = help: declare 'user'",
        ]

    def test_simple_message(self):
        diag = Diagnostic(ErrorCode.E0201, DiagnosticLevel.ERROR, "expected ')'")
        assert diag.to_simple_message() == "[E0201] expected ')'"
        assert diag.primary_span is None

    def test_emitter_counts(self):
        emitter = DiagnosticEmitter("a b", "rule.mvel")
        emitter.error(ErrorCode.E0204, "bad").emit()
        emitter.warning(ErrorCode.W0302, "guess").emit()
        assert emitter.has_errors()
        assert (emitter.error_count(), emitter.warning_count()) == (1, 1)
        emitter.clear()
        assert not emitter.has_errors()


class TestSuggestions:
    """Tests for similar-name suggestions."""

    def test_levenshtein(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("nmae", "name") == 2
        assert levenshtein_distance("", "abc") == 3

    def test_suggestions_sorted_by_distance(self):
        assert suggest_similar("nam", ["name", "game", "salary"]) == ["name", "game"]

    def test_no_candidates(self):
        assert suggest_similar("x", []) == []
