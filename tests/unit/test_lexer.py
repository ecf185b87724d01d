"""
Unit tests for the pymvel Lexer.
"""

import pytest

from pymvel.compiler.lexer import Lexer, decode_string_literal, tokenize
from pymvel.compiler.tokens import Token, TokenType
from pymvel.utils.errors import LexerError, ParserError


def _types(tokens: list[Token]) -> list[TokenType]:
    return [t.type for t in tokens if t.type != TokenType.EOF]


class TestLexerBasics:
    """Basic lexer functionality tests."""

    def test_empty_source(self, tokenize):
        """Empty source should produce only an EOF token."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
        assert tokens[0].value is None

    def test_whitespace_only(self, tokenize):
        """Whitespace-only source should produce only an EOF token."""
        tokens = tokenize("   \t\n  ")
        assert _types(tokens) == []

    def test_line_comment_skipped(self, tokenize):
        """Line comments should not produce tokens."""
        tokens = tokenize("x // trailing comment\ny")
        assert [t.value for t in tokens[:-1]] == ["x", "y"]

    def test_block_comment_skipped(self, tokenize):
        """Block comments may span lines."""
        tokens = tokenize("a /* one\ntwo */ + b")
        assert _types(tokens) == [TokenType.IDENTIFIER, TokenType.PLUS, TokenType.IDENTIFIER]

    def test_locations_are_one_indexed(self, tokenize):
        """Tokens carry 1-indexed line and column numbers."""
        tokens = tokenize("a\n  bb")
        assert (tokens[0].line, tokens[0].column) == (1, 1)
        assert (tokens[1].line, tokens[1].column) == (2, 3)

    def test_filename_recorded(self, lexer_factory):
        """The filename is carried in each token location."""
        tokens = lexer_factory("x", filename="rule.mvel").tokenize()
        assert tokens[0].location.filename == "rule.mvel"

    def test_iteration_matches_tokenize(self):
        """Iterating a lexer yields the same tokens as tokenize()."""
        source = "a + b * 2"
        assert list(Lexer(source)) == tokenize(source)


class TestLexerLiterals:
    """Tests for literal tokenization."""

    def test_integer_literals_keep_lexeme(self, tokenize):
        """Integer tokens keep their exact text."""
        tokens = tokenize("42 0x1F 0b1010 1_000 10L 0777")
        integers = [t for t in tokens if t.type == TokenType.INTEGER]
        assert [t.value for t in integers] == ["42", "0x1F", "0b1010", "1_000", "10L", "0777"]

    def test_float_literals(self, tokenize):
        """Floats cover fractions, exponents and suffixes."""
        tokens = tokenize("3.14 .5 1.23e-4 5f 10d 0x1.8p3")
        floats = [t for t in tokens if t.type == TokenType.FLOAT]
        assert [t.value for t in floats] == ["3.14", ".5", "1.23e-4", "5f", "10d", "0x1.8p3"]

    def test_unit_literals(self, tokenize):
        """A number followed by a word is a unit literal."""
        tokens = tokenize("100B 7I 10litres")
        assert _types(tokens) == [TokenType.UNIT] * 3
        assert [t.value for t in tokens[:-1]] == ["100B", "7I", "10litres"]

    def test_invalid_radix_suffix(self, tokenize):
        """Hex literals cannot carry a unit."""
        with pytest.raises(LexerError, match="Invalid number literal"):
            tokenize("0x1Fzz")

    def test_double_quoted_string(self, tokenize):
        """String tokens keep their quotes."""
        tokens = tokenize('"hello world"')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == '"hello world"'

    def test_single_character_quotes_are_char(self, tokenize):
        """A single-quoted single character is a char literal."""
        assert tokenize("'a'")[0].type == TokenType.CHAR
        assert tokenize(r"'\n'")[0].type == TokenType.CHAR

    def test_single_quoted_text_is_string(self, tokenize):
        """A longer single-quoted body is a string."""
        token = tokenize("'abc'")[0]
        assert token.type == TokenType.STRING
        assert token.value == "'abc'"

    def test_text_block(self, tokenize):
        """Triple-quoted text blocks are a single token."""
        tokens = tokenize('"""\nline one\nline two"""')
        assert _types(tokens) == [TokenType.TEXT_BLOCK]

    def test_regex_literal(self, tokenize):
        """Regex literals carry the pattern with escaped slashes resolved."""
        token = tokenize(r"~/a\/b\d+/")[0]
        assert token.type == TokenType.REGEX
        assert token.value == r"a/b\d+"

    def test_boolean_and_null_keywords(self, tokenize):
        """Literal keywords have their own token types."""
        tokens = tokenize("true false null empty nil undefined")
        assert _types(tokens) == [
            TokenType.TRUE,
            TokenType.FALSE,
            TokenType.NULL,
            TokenType.EMPTY,
            TokenType.NIL,
            TokenType.UNDEFINED,
        ]


class TestLexerNames:
    """Tests for identifiers and reserved words."""

    def test_dollar_and_underscore_identifiers(self, tokenize):
        """Identifiers may contain `$` and `_`."""
        tokens = tokenize("$temp _x a1$")
        assert _types(tokens) == [TokenType.IDENTIFIER] * 3
        assert tokens[0].value == "$temp"

    def test_custom_operator_keywords(self, tokenize):
        """Word operators are reserved."""
        tokens = tokenize("strsim soundslike contains in isdef is instanceof")
        assert _types(tokens) == [
            TokenType.STRSIM,
            TokenType.SOUNDSLIKE,
            TokenType.CONTAINS,
            TokenType.IN,
            TokenType.ISDEF,
            TokenType.IS,
            TokenType.INSTANCEOF,
        ]

    def test_contextual_words_are_identifiers(self, tokenize):
        """`var` and `yield` are not reserved."""
        assert _types(tokenize("var yield")) == [TokenType.IDENTIFIER, TokenType.IDENTIFIER]

    def test_keyword_flag(self, tokenize):
        """Reserved words report is_keyword."""
        tokens = tokenize("new foo")
        assert tokens[0].is_keyword
        assert not tokens[1].is_keyword


class TestLexerOperators:
    """Tests for operator tokenization."""

    def test_longest_match(self, tokenize):
        """Three-character operators win over their prefixes."""
        tokens = tokenize("a **= 2")
        assert tokens[1].type == TokenType.POWER_ASSIGN

    def test_navigation_operators(self, tokenize):
        """Safe navigation, projection and selection tokens."""
        tokens = tokenize("a?.b c?[0] d.{e} f.?(g)")
        types = _types(tokens)
        assert TokenType.SAFE_DOT in types
        assert TokenType.SAFE_LBRACKET in types
        assert TokenType.PROJECTION in types
        assert TokenType.SELECTION in types

    def test_question_dot_before_digit_is_ternary(self, tokenize):
        """`c?.5:1` is a conditional over a fractional literal."""
        tokens = tokenize("c?.5:1")
        assert _types(tokens) == [
            TokenType.IDENTIFIER,
            TokenType.QUESTION,
            TokenType.FLOAT,
            TokenType.COLON,
            TokenType.INTEGER,
        ]

    def test_method_reference_and_arrow(self, tokenize):
        """`::` and `->` are single tokens."""
        types = _types(tokenize("String::valueOf x -> x"))
        assert TokenType.DOUBLE_COLON in types
        assert TokenType.ARROW in types

    def test_tilde_before_regex(self, tokenize):
        """A spaced `~` is the match operator, `~/` starts a regex."""
        tokens = tokenize("name ~ ~/[A-Z].*/")
        assert _types(tokens) == [TokenType.IDENTIFIER, TokenType.TILDE, TokenType.REGEX]

    def test_operator_lexemes(self, tokenize):
        """Operator tokens carry their text."""
        tokens = tokenize("a != b")
        assert tokens[1].text == "!="
        assert tokens[1].is_operator


class TestLexerErrors:
    """Tests for lexer error handling."""

    def test_unterminated_string(self, tokenize):
        """Unterminated strings raise LexerError."""
        with pytest.raises(LexerError, match="Unterminated string literal"):
            tokenize('"hello')

    def test_newline_in_string(self, tokenize):
        """Raw newlines are not allowed in strings."""
        with pytest.raises(LexerError, match="Newline in string literal"):
            tokenize('"hello\nworld"')

    def test_unterminated_comment(self, tokenize):
        """Unterminated block comments raise LexerError."""
        with pytest.raises(LexerError, match="Unterminated multi-line comment"):
            tokenize("a /* never closed")

    def test_unterminated_regex(self, tokenize):
        """A regex must close on the same line."""
        with pytest.raises(LexerError, match="Unterminated regex literal"):
            tokenize("~/abc")

    def test_invalid_escape(self, tokenize):
        """Unknown escapes are rejected."""
        with pytest.raises(LexerError, match="Invalid escape sequence"):
            tokenize(r'"\q"')

    def test_unexpected_character(self, tokenize):
        """Characters outside the language are rejected."""
        with pytest.raises(LexerError, match="Unexpected character") as exc_info:
            tokenize("a @ b")
        assert exc_info.value.line == 1
        assert exc_info.value.column == 3

    def test_lexer_error_is_parser_error(self, tokenize):
        """Every syntax failure can be caught as ParserError."""
        with pytest.raises(ParserError) as exc_info:
            tokenize("`")
        assert exc_info.value.rule == "token"


class TestDecodeStringLiteral:
    """Tests for string literal decoding."""

    def test_simple_escapes(self):
        assert decode_string_literal(r'"a\tb\n"') == "a\tb\n"

    def test_unicode_escape(self):
        assert decode_string_literal(r'"\u0041"') == "A"

    def test_octal_escape(self):
        assert decode_string_literal(r'"\101"') == "A"

    def test_single_quotes(self):
        assert decode_string_literal(r"'it\'s'") == "it's"

    def test_text_block_drops_leading_newline(self):
        assert decode_string_literal('"""\nabc"""') == "abc"
