"""
Token definitions for the pymvel lexer.

This module defines every token type of the expression language: the
host-language operators, the MVEL navigation operators (``?.``, ``.{``,
``.?(``, ``#``) and the literal forms, including regex and unit literals.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from pymvel.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types in pymvel."""

    # End of file
    EOF = auto()

    # Literals
    INTEGER = auto()
    FLOAT = auto()
    CHAR = auto()
    STRING = auto()
    TEXT_BLOCK = auto()
    REGEX = auto()
    UNIT = auto()  # 10litres, 100B, 7I

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    NEW = auto()
    THIS = auto()
    SUPER = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    IF = auto()
    ELSE = auto()
    FOR = auto()
    WHILE = auto()
    DO = auto()
    TRY = auto()
    CATCH = auto()
    FINALLY = auto()
    SWITCH = auto()
    CASE = auto()
    DEFAULT = auto()
    RETURN = auto()
    THROW = auto()
    BREAK = auto()
    CONTINUE = auto()
    FINAL = auto()
    INSTANCEOF = auto()
    IS = auto()
    STRSIM = auto()
    SOUNDSLIKE = auto()
    CONTAINS = auto()
    IN = auto()
    ISDEF = auto()
    EMPTY = auto()
    NIL = auto()
    UNDEFINED = auto()

    # Arithmetic operators
    PLUS = auto()  # +
    MINUS = auto()  # -
    STAR = auto()  # *
    SLASH = auto()  # /
    PERCENT = auto()  # %
    DOUBLE_STAR = auto()  # **
    INCREMENT = auto()  # ++
    DECREMENT = auto()  # --

    # Comparison operators
    EQ = auto()  # ==
    NE = auto()  # !=
    LT = auto()  # <
    GT = auto()  # >
    LE = auto()  # <=
    GE = auto()  # >=

    # Logical and bitwise operators
    AND_AND = auto()  # &&
    OR_OR = auto()  # ||
    BANG = auto()  # !
    AMP = auto()  # &
    PIPE = auto()  # |
    CARET = auto()  # ^
    TILDE = auto()  # ~ (bitwise not, regex match)

    # Assignment operators
    ASSIGN = auto()  # =
    PLUS_ASSIGN = auto()  # +=
    MINUS_ASSIGN = auto()  # -=
    STAR_ASSIGN = auto()  # *=
    SLASH_ASSIGN = auto()  # /=
    PERCENT_ASSIGN = auto()  # %=
    POWER_ASSIGN = auto()  # **=
    AMP_ASSIGN = auto()  # &=
    PIPE_ASSIGN = auto()  # |=
    CARET_ASSIGN = auto()  # ^=

    # Navigation operators
    DOT = auto()  # .
    SAFE_DOT = auto()  # ?.
    SAFE_LBRACKET = auto()  # ?[
    PROJECTION = auto()  # .{
    SELECTION = auto()  # .?(
    HASH = auto()  # #
    DOUBLE_COLON = auto()  # ::
    ARROW = auto()  # ->
    QUESTION = auto()  # ?
    COLON = auto()  # :

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    SEMICOLON = auto()


# Reserved words. ``var`` and ``yield`` are contextual and lex as identifiers.
KEYWORDS: dict[str, TokenType] = {
    "new": TokenType.NEW,
    "this": TokenType.THIS,
    "super": TokenType.SUPER,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "for": TokenType.FOR,
    "while": TokenType.WHILE,
    "do": TokenType.DO,
    "try": TokenType.TRY,
    "catch": TokenType.CATCH,
    "finally": TokenType.FINALLY,
    "switch": TokenType.SWITCH,
    "case": TokenType.CASE,
    "default": TokenType.DEFAULT,
    "return": TokenType.RETURN,
    "throw": TokenType.THROW,
    "break": TokenType.BREAK,
    "continue": TokenType.CONTINUE,
    "final": TokenType.FINAL,
    "instanceof": TokenType.INSTANCEOF,
    "is": TokenType.IS,
    "strsim": TokenType.STRSIM,
    "soundslike": TokenType.SOUNDSLIKE,
    "contains": TokenType.CONTAINS,
    "in": TokenType.IN,
    "isdef": TokenType.ISDEF,
    "empty": TokenType.EMPTY,
    "nil": TokenType.NIL,
    "undefined": TokenType.UNDEFINED,
}

# Single-character tokens
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.BANG,
    "&": TokenType.AMP,
    "|": TokenType.PIPE,
    "^": TokenType.CARET,
    "~": TokenType.TILDE,
    "=": TokenType.ASSIGN,
    ".": TokenType.DOT,
    "#": TokenType.HASH,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}

# Two-character tokens
DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "**": TokenType.DOUBLE_STAR,
    "++": TokenType.INCREMENT,
    "--": TokenType.DECREMENT,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND_AND,
    "||": TokenType.OR_OR,
    "+=": TokenType.PLUS_ASSIGN,
    "-=": TokenType.MINUS_ASSIGN,
    "*=": TokenType.STAR_ASSIGN,
    "/=": TokenType.SLASH_ASSIGN,
    "%=": TokenType.PERCENT_ASSIGN,
    "&=": TokenType.AMP_ASSIGN,
    "|=": TokenType.PIPE_ASSIGN,
    "^=": TokenType.CARET_ASSIGN,
    "?.": TokenType.SAFE_DOT,
    "?[": TokenType.SAFE_LBRACKET,
    ".{": TokenType.PROJECTION,
    "::": TokenType.DOUBLE_COLON,
    "->": TokenType.ARROW,
}

# Three-character tokens
TRIPLE_CHAR_TOKENS: dict[str, TokenType] = {
    "**=": TokenType.POWER_ASSIGN,
    ".?(": TokenType.SELECTION,
}

ASSIGNMENT_TOKENS = frozenset(
    {
        TokenType.ASSIGN,
        TokenType.PLUS_ASSIGN,
        TokenType.MINUS_ASSIGN,
        TokenType.STAR_ASSIGN,
        TokenType.SLASH_ASSIGN,
        TokenType.PERCENT_ASSIGN,
        TokenType.POWER_ASSIGN,
        TokenType.AMP_ASSIGN,
        TokenType.PIPE_ASSIGN,
        TokenType.CARET_ASSIGN,
    }
)

LITERAL_TOKENS = frozenset(
    {
        TokenType.INTEGER,
        TokenType.FLOAT,
        TokenType.CHAR,
        TokenType.STRING,
        TokenType.TEXT_BLOCK,
        TokenType.REGEX,
        TokenType.UNIT,
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.NULL,
    }
)


@dataclass(slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The exact lexeme for literals and names; regex tokens carry
            the pattern between the slashes
        location: Source location of this token
    """

    type: TokenType
    value: Any
    location: SourceLocation

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self.type == other.type and self.value == other.value
        if isinstance(other, TokenType):
            return self.type == other
        return NotImplemented

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int:
        return self.location.column

    @property
    def text(self) -> str:
        """The token's lexeme as written (keywords and operators included)."""
        return "" if self.value is None else str(self.value)

    @property
    def is_literal(self) -> bool:
        """Check if this token represents a literal value."""
        return self.type in LITERAL_TOKENS

    @property
    def is_keyword(self) -> bool:
        return self.type in _KEYWORD_TYPES

    @property
    def is_assignment(self) -> bool:
        return self.type in ASSIGNMENT_TOKENS

    @property
    def is_operator(self) -> bool:
        """Check if this token represents an operator."""
        return self.type in _OPERATOR_TYPES


_KEYWORD_TYPES = frozenset(KEYWORDS.values())

_DELIMITER_TYPES = frozenset(
    {
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.LBRACE,
        TokenType.RBRACE,
        TokenType.LBRACKET,
        TokenType.RBRACKET,
        TokenType.COMMA,
        TokenType.SEMICOLON,
    }
)

_OPERATOR_TYPES = frozenset(
    (
        set(SINGLE_CHAR_TOKENS.values())
        | set(DOUBLE_CHAR_TOKENS.values())
        | set(TRIPLE_CHAR_TOKENS.values())
    )
    - _DELIMITER_TYPES
)
