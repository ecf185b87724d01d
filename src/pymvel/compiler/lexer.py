"""
pymvel Lexer (Tokenizer).

Transforms expression or statement text into a stream of tokens. Literal
tokens keep their exact lexeme so that the translator can reproduce them
verbatim in the generated source.
"""

from typing import Iterator, Optional

from pymvel.compiler.tokens import (
    DOUBLE_CHAR_TOKENS,
    KEYWORDS,
    SINGLE_CHAR_TOKENS,
    TRIPLE_CHAR_TOKENS,
    Token,
    TokenType,
)
from pymvel.utils.errors import LexerError, SourceLocation

_INTEGER_SUFFIXES = frozenset({"L", "l"})
_FLOAT_SUFFIXES = frozenset({"f", "F", "d", "D"})

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "s": " ",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


def decode_string_literal(raw: str) -> str:
    """
    Decode the body of a quoted literal lexeme.

    Args:
        raw: The lexeme including its quotes ("...", '...' or a text block)

    Returns:
        The literal's value with escape sequences applied.
    """
    if raw.startswith('"""'):
        body = raw[3:-3]
        if body.startswith("\r\n"):
            body = body[2:]
        elif body.startswith("\n"):
            body = body[1:]
    else:
        body = raw[1:-1]

    chars: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\" or i + 1 >= len(body):
            chars.append(char)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            chars.append(_SIMPLE_ESCAPES[nxt])
            i += 2
        elif nxt == "u":
            j = i + 1
            while j < len(body) and body[j] == "u":
                j += 1
            chars.append(chr(int(body[j : j + 4], 16)))
            i = j + 4
        elif nxt in "01234567":
            j = i + 1
            limit = i + (4 if nxt in "0123" else 3)
            while j < len(body) and j < limit and body[j] in "01234567":
                j += 1
            chars.append(chr(int(body[i + 1 : j], 8)))
            i = j
        elif nxt == "\n":
            # Line continuation inside a text block
            i += 2
        else:
            chars.append(nxt)
            i += 2
    return "".join(chars)


class Lexer:
    """
    Tokenizer for pymvel source text.

    The lexer supports:
    - Java-style identifiers, including ``$`` and ``_``
    - Integer, floating-point, character and unit literals
    - String literals (double quoted, single quoted) and text blocks
    - Regex literals ``~/pattern/``
    - Comments (// single line, /* multi-line */)

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The source text to tokenize
            filename: Optional filename for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

        self._line_start = 0

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        return self._peek_ahead(1)

    def _peek_ahead(self, n: int) -> Optional[str]:
        """Return the character n positions ahead."""
        peek_pos = self.pos + n
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self.pos,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        """Extract the current line of source for error messages."""
        end = self.source.find("\n", self._line_start)
        if end == -1:
            end = len(self.source)
        return self.source[self._line_start : end]

    def _error(self, message: str, location: Optional[SourceLocation] = None) -> LexerError:
        return LexerError(message, location or self._location(), self._current_line_text())

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
            self._line_start = self.pos
        else:
            self.column += 1

        return char

    def _skip_whitespace(self) -> None:
        while self._current_char is not None and self._current_char in " \t\r\n\f":
            self._advance()

    def _skip_line_comment(self) -> bool:
        """Skip a // comment. Returns True if one was skipped."""
        if self._current_char == "/" and self._peek_char == "/":
            while self._current_char is not None and self._current_char != "\n":
                self._advance()
            return True
        return False

    def _skip_multiline_comment(self) -> bool:
        """
        Skip multi-line comments /* ... */.

        Returns:
            True if a multi-line comment was skipped, False otherwise.
        """
        if self._current_char == "/" and self._peek_char == "*":
            start_loc = self._location()
            self._advance()  # /
            self._advance()  # *

            while True:
                if self._current_char is None:
                    raise self._error("Unterminated multi-line comment", start_loc)
                if self._current_char == "*" and self._peek_char == "/":
                    self._advance()  # *
                    self._advance()  # /
                    return True
                self._advance()

        return False

    def _read_escape(self, chars: list[str]) -> None:
        """Copy one escape sequence (backslash included) into chars."""
        chars.append(self._advance())  # backslash
        char = self._current_char
        if char is None:
            raise self._error("Unterminated escape sequence")
        if char in _SIMPLE_ESCAPES:
            chars.append(self._advance())
            return
        if char in "01234567":
            limit = 3 if char in "0123" else 2
            while limit and self._current_char is not None and self._current_char in "01234567":
                chars.append(self._advance())
                limit -= 1
            return
        if char == "u":
            while self._current_char == "u":
                chars.append(self._advance())
            for _ in range(4):
                if self._current_char is None or self._current_char not in "0123456789abcdefABCDEF":
                    raise self._error("Invalid unicode escape sequence")
                chars.append(self._advance())
            return
        raise self._error(f"Invalid escape sequence: \\{char}")

    def _read_string(self, quote_char: str) -> Token:
        """
        Read a quoted literal.

        Double quotes always produce a STRING token. Single quotes produce a
        CHAR token when the body is exactly one character (after escapes),
        and a STRING token otherwise.
        """
        start_loc = self._location()
        start = self.pos
        self._advance()  # opening quote

        body: list[str] = []
        length = 0
        while True:
            if self._current_char is None:
                raise self._error("Unterminated string literal", start_loc)
            if self._current_char == "\n":
                raise self._error("Newline in string literal (use \\n for newlines)")
            if self._current_char == quote_char:
                self._advance()
                break
            if self._current_char == "\\":
                self._read_escape(body)
            else:
                body.append(self._advance())
            length += 1

        raw = self.source[start : self.pos]
        if quote_char == "'" and length == 1:
            return Token(TokenType.CHAR, raw, start_loc)
        return Token(TokenType.STRING, raw, start_loc)

    def _read_text_block(self) -> Token:
        """Read a \"\"\"...\"\"\" text block."""
        start_loc = self._location()
        start = self.pos
        for _ in range(3):
            self._advance()

        while True:
            if self._current_char is None:
                raise self._error("Unterminated text block", start_loc)
            if self._current_char == "\\":
                self._advance()
                if self._current_char is not None:
                    self._advance()
                continue
            if (
                self._current_char == '"'
                and self._peek_char == '"'
                and self._peek_ahead(2) == '"'
            ):
                for _ in range(3):
                    self._advance()
                break
            self._advance()

        return Token(TokenType.TEXT_BLOCK, self.source[start : self.pos], start_loc)

    def _read_regex(self) -> Token:
        """Read a ~/pattern/ literal. ``\\/`` stands for a literal slash."""
        start_loc = self._location()
        self._advance()  # ~
        self._advance()  # /

        chars: list[str] = []
        while True:
            if self._current_char is None or self._current_char == "\n":
                raise self._error("Unterminated regex literal", start_loc)
            if self._current_char == "\\" and self._peek_char == "/":
                self._advance()
                chars.append(self._advance())
                continue
            if self._current_char == "\\" and self._peek_char is not None:
                chars.append(self._advance())
                chars.append(self._advance())
                continue
            if self._current_char == "/":
                self._advance()
                break
            chars.append(self._advance())

        return Token(TokenType.REGEX, "".join(chars), start_loc)

    def _read_digits(self, allowed: str) -> None:
        while self._current_char is not None and (
            self._current_char in allowed or self._current_char == "_"
        ):
            self._advance()

    def _read_number(self) -> Token:
        """
        Read a numeric literal.

        Supports:
        - Decimal, hexadecimal (0x1F), binary (0b101) and octal (017) integers
        - Floats: 3.14, .5, 1.23e-4, hex floats 0x1.8p3
        - Underscores for readability: 1_000_000
        - Java suffixes: L, f, F, d, D
        - Unit literals: a decimal number followed by any other word (10litres)

        Returns:
            An INTEGER, FLOAT or UNIT token whose value is the exact lexeme.
        """
        start_loc = self._location()
        start = self.pos
        is_float = False
        radix_prefixed = False
        decimal = "0123456789"
        hexdigits = "0123456789abcdefABCDEF"

        if self._current_char == "0" and self._peek_char in ("x", "X"):
            radix_prefixed = True
            self._advance()
            self._advance()
            self._read_digits(hexdigits)
            if self._current_char == ".":
                is_float = True
                self._advance()
                self._read_digits(hexdigits)
            if self._current_char in ("p", "P"):
                is_float = True
                self._read_exponent()
        elif self._current_char == "0" and self._peek_char in ("b", "B"):
            radix_prefixed = True
            self._advance()
            self._advance()
            self._read_digits("01")
        else:
            self._read_digits(decimal)
            if self._current_char == "." and self._peek_char is not None and self._peek_char.isdigit():
                is_float = True
                self._advance()
                self._read_digits(decimal)
            if self._current_char in ("e", "E") and self._exponent_follows():
                is_float = True
                self._read_exponent()

        suffix_start = self.pos
        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            self._advance()
        suffix = self.source[suffix_start : self.pos]
        lexeme = self.source[start : self.pos]

        if not suffix:
            return Token(TokenType.FLOAT if is_float else TokenType.INTEGER, lexeme, start_loc)
        if suffix in _INTEGER_SUFFIXES and not is_float:
            return Token(TokenType.INTEGER, lexeme, start_loc)
        if suffix in _FLOAT_SUFFIXES and not (radix_prefixed and not is_float):
            return Token(TokenType.FLOAT, lexeme, start_loc)
        if radix_prefixed or not suffix[0].isalpha():
            raise self._error(f"Invalid number literal: {lexeme}", start_loc)
        return Token(TokenType.UNIT, lexeme, start_loc)

    def _exponent_follows(self) -> bool:
        nxt = self._peek_char
        if nxt is not None and nxt in "+-":
            nxt = self._peek_ahead(2)
        return nxt is not None and nxt.isdigit()

    def _read_exponent(self) -> None:
        self._advance()  # e, E, p or P
        if self._current_char is not None and self._current_char in "+-":
            self._advance()
        if self._current_char is None or not self._current_char.isdigit():
            raise self._error("Invalid number: expected exponent digits")
        self._read_digits("0123456789")

    def _read_identifier_or_keyword(self) -> Token:
        """
        Read an identifier or keyword.

        Identifiers start with a letter, ``_`` or ``$`` and continue with
        letters, digits, ``_`` and ``$``.
        """
        start_loc = self._location()
        start = self.pos

        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char in "_$"
        ):
            self._advance()

        identifier = self.source[start : self.pos]
        token_type = KEYWORDS.get(identifier, TokenType.IDENTIFIER)
        return Token(token_type, identifier, start_loc)

    def _read_operator(self) -> Optional[Token]:
        """
        Read an operator or delimiter, longest match first.

        Returns:
            An operator token, or None if the current character is not an operator.
        """
        if self._current_char is None:
            return None

        start_loc = self._location()

        three_char = self.source[self.pos : self.pos + 3]
        if three_char in TRIPLE_CHAR_TOKENS:
            for _ in range(3):
                self._advance()
            return Token(TRIPLE_CHAR_TOKENS[three_char], three_char, start_loc)

        two_char = self.source[self.pos : self.pos + 2]
        # `c?.5:1` is a ternary over a fractional literal, not safe navigation
        if two_char == "?." and (self._peek_ahead(2) or "").isdigit():
            two_char = ""
        if two_char in DOUBLE_CHAR_TOKENS:
            self._advance()
            self._advance()
            return Token(DOUBLE_CHAR_TOKENS[two_char], two_char, start_loc)

        if self._current_char in SINGLE_CHAR_TOKENS:
            char = self._advance()
            return Token(SINGLE_CHAR_TOKENS[char], char, start_loc)

        return None

    def _next_token(self) -> Token:
        """Extract the next token from the source."""
        while True:
            self._skip_whitespace()
            if self._skip_line_comment():
                continue
            if self._skip_multiline_comment():
                continue
            break

        char = self._current_char
        if char is None:
            return Token(TokenType.EOF, None, self._location())

        if char == '"' and self._peek_char == '"' and self._peek_ahead(2) == '"':
            return self._read_text_block()

        if char in "\"'":
            return self._read_string(char)

        if char == "~" and self._peek_char == "/":
            return self._read_regex()

        if char.isdigit() or (
            char == "." and self._peek_char is not None and self._peek_char.isdigit()
        ):
            return self._read_number()

        if char.isalpha() or char in "_$":
            return self._read_identifier_or_keyword()

        token = self._read_operator()
        if token is not None:
            return token

        raise self._error(f"Unexpected character: {char!r}")

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source and return a list of tokens.

        Returns:
            List of tokens, always ending with an EOF token.

        Raises:
            LexerError: If invalid input is encountered.
        """
        self.pos = 0
        self.line = 1
        self.column = 1
        self._line_start = 0
        self.tokens = []

        while True:
            token = self._next_token()
            self.tokens.append(token)
            if token.type == TokenType.EOF:
                break

        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens lazily."""
        self.pos = 0
        self.line = 1
        self.column = 1
        self._line_start = 0

        while True:
            token = self._next_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source text.

    Args:
        source: The source text to tokenize
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
