"""
pymvel Parser.

A recursive descent parser that transforms a token stream into an Abstract
Syntax Tree (AST). Expressions are parsed by precedence climbing over the
operator table below; statements mirror ordinary block-structured syntax.

Parsing is fail-fast: the first mismatch raises a `ParserError` carrying
the line, column and grammar rule being matched.
"""

import functools
import logging
import re
from enum import Enum
from typing import Callable, Optional, Union

from pymvel.compiler.ast_nodes import (
    ArrayInitializer,
    AssignmentExpression,
    AssignmentOperator,
    ASTNode,
    BinaryExpression,
    BinaryOperator,
    Block,
    BooleanLiteral,
    BreakStatement,
    CastExpression,
    CatchClause,
    CharLiteral,
    CoercionExpression,
    CompilationUnit,
    ConditionalExpression,
    ContinueStatement,
    DoWhileStatement,
    EmptyLiteral,
    EmptyStatement,
    Expression,
    ExpressionStatement,
    FieldAccess,
    FloatLiteral,
    ForEachStatement,
    ForStatement,
    Identifier,
    IfStatement,
    IncrementExpression,
    IndexAccess,
    InstanceOfExpression,
    IntegerLiteral,
    IsDefinedExpression,
    LabeledStatement,
    LambdaExpression,
    ListLiteral,
    LocalVariableDeclaration,
    MapEntry,
    MapLiteral,
    MethodCall,
    MethodReference,
    MutationBlock,
    NewArray,
    NewObject,
    NilLiteral,
    NullLiteral,
    Parameter,
    ParenthesizedExpression,
    PredicateBlock,
    ProjectionExpression,
    RegexLiteral,
    RegexMatchExpression,
    ReturnStatement,
    SafeFieldAccess,
    SafeIndexAccess,
    SafeMethodCall,
    SelectionExpression,
    Statement,
    StringLiteral,
    SuperFieldAccess,
    SwitchCase,
    SwitchExpression,
    SwitchLabel,
    SwitchLabelGroup,
    SwitchRule,
    SwitchStatement,
    TextBlockLiteral,
    ThisExpression,
    ThrowStatement,
    TryStatement,
    TypePattern,
    TypeReference,
    UnaryExpression,
    UnaryOperator,
    UndefinedLiteral,
    UnitLiteral,
    VariableDeclarator,
    WhileStatement,
    YieldStatement,
)
from pymvel.compiler.lexer import decode_string_literal, tokenize
from pymvel.compiler.tokens import ASSIGNMENT_TOKENS, Token, TokenType
from pymvel.utils.diagnostics import (
    Diagnostic,
    DiagnosticEmitter,
    ErrorCode,
    SourceSpan,
    create_unclosed_delimiter_diagnostic,
    create_unexpected_token_diagnostic,
)
from pymvel.utils.errors import ParserError, SourceLocation

logger = logging.getLogger(__name__)


class ParseMode(Enum):
    """Top-level production requested by the caller."""

    EXPRESSION = "expression"
    PROGRAM = "program"


class Precedence:
    """Operator precedence levels (higher binds tighter)."""

    LOWEST = 0
    MVEL_POSTFIX = 1  # .{ .?( [tests] {ops} # ~
    ASSIGNMENT = 2  # = += -= ... (right associative)
    TERNARY = 3  # ?: (right associative)
    OR = 4  # ||
    AND = 5  # &&
    BITWISE_OR = 6  # |
    BITWISE_XOR = 7  # ^
    BITWISE_AND = 8  # &
    MEMBERSHIP = 9  # contains in
    SIMILARITY = 10  # strsim soundslike
    EQUALITY = 11  # == !=
    TYPE_TEST = 12  # instanceof is
    RELATIONAL = 13  # < > <= >=
    ADDITIVE = 14  # + -
    MULTIPLICATIVE = 15  # * / %
    POWER = 16  # **
    UNARY = 17  # + - ! ~ ++ -- isdef cast
    POSTFIX = 18  # . ?. [] ?[] () :: ++ --


# Map token types to binary operators
BINARY_OP_MAP: dict[TokenType, BinaryOperator] = {
    TokenType.DOUBLE_STAR: BinaryOperator.POW,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.LT: BinaryOperator.LT,
    TokenType.GT: BinaryOperator.GT,
    TokenType.LE: BinaryOperator.LE,
    TokenType.GE: BinaryOperator.GE,
    TokenType.EQ: BinaryOperator.EQ,
    TokenType.NE: BinaryOperator.NE,
    TokenType.STRSIM: BinaryOperator.STRSIM,
    TokenType.SOUNDSLIKE: BinaryOperator.SOUNDSLIKE,
    TokenType.CONTAINS: BinaryOperator.CONTAINS,
    TokenType.IN: BinaryOperator.IN,
    TokenType.AMP: BinaryOperator.BIT_AND,
    TokenType.CARET: BinaryOperator.BIT_XOR,
    TokenType.PIPE: BinaryOperator.BIT_OR,
    TokenType.AND_AND: BinaryOperator.AND,
    TokenType.OR_OR: BinaryOperator.OR,
}

ASSIGNMENT_OP_MAP: dict[TokenType, AssignmentOperator] = {
    TokenType.ASSIGN: AssignmentOperator.ASSIGN,
    TokenType.PLUS_ASSIGN: AssignmentOperator.ADD,
    TokenType.MINUS_ASSIGN: AssignmentOperator.SUB,
    TokenType.STAR_ASSIGN: AssignmentOperator.MUL,
    TokenType.SLASH_ASSIGN: AssignmentOperator.DIV,
    TokenType.PERCENT_ASSIGN: AssignmentOperator.MOD,
    TokenType.POWER_ASSIGN: AssignmentOperator.POW,
    TokenType.AMP_ASSIGN: AssignmentOperator.BIT_AND,
    TokenType.PIPE_ASSIGN: AssignmentOperator.BIT_OR,
    TokenType.CARET_ASSIGN: AssignmentOperator.BIT_XOR,
}

UNARY_OP_MAP: dict[TokenType, UnaryOperator] = {
    TokenType.PLUS: UnaryOperator.POS,
    TokenType.MINUS: UnaryOperator.NEG,
    TokenType.BANG: UnaryOperator.NOT,
    TokenType.TILDE: UnaryOperator.BIT_NOT,
}

# Map token types to their precedence. `[` is absent: its level depends on
# whether it opens an index or a predicate block.
PRECEDENCE_MAP: dict[TokenType, int] = {
    # Lowest-level postfix forms
    TokenType.PROJECTION: Precedence.MVEL_POSTFIX,
    TokenType.SELECTION: Precedence.MVEL_POSTFIX,
    TokenType.HASH: Precedence.MVEL_POSTFIX,
    TokenType.TILDE: Precedence.MVEL_POSTFIX,
    TokenType.LBRACE: Precedence.MVEL_POSTFIX,
    # Assignment
    **{token_type: Precedence.ASSIGNMENT for token_type in ASSIGNMENT_TOKENS},
    # Ternary
    TokenType.QUESTION: Precedence.TERNARY,
    # Logical
    TokenType.OR_OR: Precedence.OR,
    TokenType.AND_AND: Precedence.AND,
    # Bitwise
    TokenType.PIPE: Precedence.BITWISE_OR,
    TokenType.CARET: Precedence.BITWISE_XOR,
    TokenType.AMP: Precedence.BITWISE_AND,
    # Custom operators
    TokenType.CONTAINS: Precedence.MEMBERSHIP,
    TokenType.IN: Precedence.MEMBERSHIP,
    TokenType.STRSIM: Precedence.SIMILARITY,
    TokenType.SOUNDSLIKE: Precedence.SIMILARITY,
    # Equality and type tests
    TokenType.EQ: Precedence.EQUALITY,
    TokenType.NE: Precedence.EQUALITY,
    TokenType.INSTANCEOF: Precedence.TYPE_TEST,
    TokenType.IS: Precedence.TYPE_TEST,
    # Relational
    TokenType.LT: Precedence.RELATIONAL,
    TokenType.GT: Precedence.RELATIONAL,
    TokenType.LE: Precedence.RELATIONAL,
    TokenType.GE: Precedence.RELATIONAL,
    # Arithmetic
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.SLASH: Precedence.MULTIPLICATIVE,
    TokenType.PERCENT: Precedence.MULTIPLICATIVE,
    TokenType.DOUBLE_STAR: Precedence.POWER,
    # Postfix
    TokenType.DOT: Precedence.POSTFIX,
    TokenType.SAFE_DOT: Precedence.POSTFIX,
    TokenType.SAFE_LBRACKET: Precedence.POSTFIX,
    TokenType.LPAREN: Precedence.POSTFIX,
    TokenType.DOUBLE_COLON: Precedence.POSTFIX,
    TokenType.INCREMENT: Precedence.POSTFIX,
    TokenType.DECREMENT: Precedence.POSTFIX,
}

# Binary operators whose result is a boolean test
TEST_OPERATORS = frozenset(
    {
        BinaryOperator.LT,
        BinaryOperator.GT,
        BinaryOperator.LE,
        BinaryOperator.GE,
        BinaryOperator.EQ,
        BinaryOperator.NE,
        BinaryOperator.STRSIM,
        BinaryOperator.SOUNDSLIKE,
        BinaryOperator.CONTAINS,
        BinaryOperator.IN,
        BinaryOperator.AND,
        BinaryOperator.OR,
    }
)

# Tokens that can start an operand; used to tell `(Type) x` from `(a) - b`
OPERAND_START_TOKENS = frozenset(
    {
        TokenType.IDENTIFIER,
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
        TokenType.THIS,
        TokenType.SUPER,
        TokenType.NEW,
        TokenType.LPAREN,
        TokenType.LBRACKET,
        TokenType.BANG,
        TokenType.TILDE,
        TokenType.EMPTY,
        TokenType.NIL,
        TokenType.UNDEFINED,
        TokenType.SWITCH,
        TokenType.ISDEF,
    }
)

PRIMITIVE_TYPES = frozenset(
    {"boolean", "byte", "char", "short", "int", "long", "float", "double", "void"}
)

CLOSING_DELIMITERS: dict[TokenType, str] = {
    TokenType.RPAREN: "(",
    TokenType.RBRACKET: "[",
    TokenType.RBRACE: "{",
}

_UNIT_LITERAL = re.compile(r"^([0-9_.]+(?:[eE][+-]?[0-9]+)?)(.+)$")

# Tokens after `yield` that make it an ordinary name rather than a statement
_YIELD_AS_NAME = frozenset(
    {
        TokenType.DOT,
        TokenType.SAFE_DOT,
        TokenType.SEMICOLON,
        TokenType.LBRACKET,
        TokenType.INCREMENT,
        TokenType.DECREMENT,
        *ASSIGNMENT_TOKENS,
    }
)


def _grammar_rule(name: str) -> Callable:
    """Record the grammar rule a parse method matches, for error reports."""

    def decorator(method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(self: "Parser", *args, **kwargs):
            self._rule_stack.append(name)
            try:
                return method(self, *args, **kwargs)
            finally:
                self._rule_stack.pop()

        return wrapper

    return decorator


class Parser:
    """
    Recursive descent parser for pymvel.

    Parses a list of tokens into an Abstract Syntax Tree, either a single
    expression or a `CompilationUnit` of statements.

    Usage:
        parser = Parser(tokens, source=text)
        ast = parser.parse_expression()
    """

    def __init__(self, tokens: list[Token], source: str = "", filename: str = "<input>") -> None:
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            source: Optional source code for rich diagnostics
            filename: Optional filename for error reporting
        """
        self.tokens = tokens
        self.pos = 0
        self._source = source
        self._source_lines: list[str] = source.splitlines() if source else []
        self._filename = filename
        self._emitter: Optional[DiagnosticEmitter] = None
        self.diagnostics: list[Diagnostic] = []

        self._rule_stack: list[str] = []
        # Greater than zero while trying an alternative that may be discarded
        self._speculating = 0
        self._in_case_label = False
        # Token position of each `[` already classified -> is predicate block
        self._bracket_kinds: dict[int, bool] = {}

        if source:
            self._emitter = DiagnosticEmitter(source, filename)

    # -------------------------------------------------------------------------
    # Token Helpers
    # -------------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _peek(self, offset: int = 1) -> Token:
        """Peek at a token ahead of the current position."""
        return self._token_at(self.pos + offset)

    def _token_at(self, index: int) -> Token:
        if index >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[index]

    def _is_at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _check_word(self, word: str) -> bool:
        """Check for a contextual keyword such as `var` or `yield`."""
        return self._current.type == TokenType.IDENTIFIER and self._current.value == word

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """Consume current token if it matches, else raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error_with_context(message, expected=f"'{_describe(token_type)}'")

    def _expect_closing(self, token_type: TokenType, opening: Token) -> Token:
        """Consume a closing delimiter, reporting the opener when input ends."""
        if self._check(token_type):
            return self._advance()
        delimiter = CLOSING_DELIMITERS[token_type]
        if self._is_at_end():
            raise self._error_unclosed_delimiter(delimiter, opening)
        raise self._error_with_context(
            f"Expected '{_describe(token_type)}' to close '{delimiter}'",
            expected=_describe(token_type),
        )

    def _expect_identifier(self, message: str) -> str:
        return self._expect(TokenType.IDENTIFIER, message).value

    def _parse_member_name(self) -> str:
        """
        Parse a member name after `.`, `?.` or `::`.

        Any reserved word is accepted, enabling `System.in` or
        `list.contains(x)`.
        """
        if self._check(TokenType.IDENTIFIER) or self._current.is_keyword:
            return self._advance().value
        raise self._error_with_context("Expected member name", expected="member name")

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def _rule(self) -> Optional[str]:
        return self._rule_stack[-1] if self._rule_stack else None

    def _span(self, token: Token) -> SourceSpan:
        return SourceSpan.from_location(
            token.location.line,
            token.location.column,
            max(1, len(token.text)),
            self._filename,
        )

    def _source_line(self, token: Token) -> Optional[str]:
        line = token.location.line
        if 1 <= line <= len(self._source_lines):
            return self._source_lines[line - 1]
        return None

    def _error(self, message: str, token: Optional[Token] = None) -> ParserError:
        """Create a parser error with location info."""
        token = token or self._current
        return ParserError(message, token.location, self._source_line(token), self._rule())

    def _error_with_context(
        self,
        message: str,
        expected: Optional[str] = None,
        code: str = ErrorCode.E0201,
    ) -> ParserError:
        """Create a parser error and record a rich diagnostic for it."""
        token = self._current

        if self._emitter and not self._speculating:
            span = self._span(token)
            found = token.text if token.type != TokenType.EOF else "end of input"
            if expected:
                diagnostic = create_unexpected_token_diagnostic(
                    self._emitter, expected, found, span
                )
            else:
                diagnostic = self._emitter.error(code, message, span).emit()
            if self._rule():
                diagnostic.notes.append(f"while parsing {self._rule()}")
            self.diagnostics.append(diagnostic)

        return self._error(message, token)

    def _error_unclosed_delimiter(self, delimiter: str, opening: Token) -> ParserError:
        """Create an error for an unclosed delimiter with helpful context."""
        token = self._current

        if self._emitter and not self._speculating:
            diagnostic = create_unclosed_delimiter_diagnostic(
                self._emitter,
                delimiter,
                self._span(opening),
                self._span(token),
            )
            self.diagnostics.append(diagnostic)

        return self._error(f"Unclosed delimiter '{delimiter}'", token)

    def get_diagnostics(self) -> list[Diagnostic]:
        """Get all rich diagnostics emitted during parsing."""
        return self.diagnostics

    def render_diagnostics(self, use_color: bool = True) -> str:
        """Render all diagnostics as formatted strings."""
        if self._emitter:
            return self._emitter.render_all(use_color)
        return ""

    # -------------------------------------------------------------------------
    # Entry Points
    # -------------------------------------------------------------------------

    def parse(self, mode: ParseMode = ParseMode.EXPRESSION) -> ASTNode:
        if mode == ParseMode.PROGRAM:
            return self.parse_program()
        return self.parse_expression()

    @_grammar_rule("expression")
    def parse_expression(self) -> Expression:
        """Parse the whole input as a single expression."""
        self.pos = 0
        expression = self._parse_expression()
        self._match(TokenType.SEMICOLON)
        if not self._is_at_end():
            raise self._error_with_context(
                f"Unexpected '{self._current.text}' after expression",
                code=ErrorCode.E0204,
            )
        return expression

    @_grammar_rule("compilationUnit")
    def parse_program(self) -> CompilationUnit:
        """Parse the whole input as a statement sequence."""
        self.pos = 0
        start = self._current
        statements: list[Statement] = []
        while not self._is_at_end():
            statements.append(self._parse_statement())
        return CompilationUnit(tuple(statements), start.location)

    # -------------------------------------------------------------------------
    # Lookahead
    # -------------------------------------------------------------------------

    def _scan_type(self, index: int) -> Optional[int]:
        """
        Scan a type starting at token `index` without consuming anything.

        Returns:
            The index just past the type, or None if no type starts there.
        """
        if self._token_at(index).type != TokenType.IDENTIFIER:
            return None
        index += 1
        while (
            self._token_at(index).type == TokenType.DOT
            and self._token_at(index + 1).type == TokenType.IDENTIFIER
        ):
            index += 2
        if self._token_at(index).type == TokenType.LT:
            scanned = self._scan_type_arguments(index)
            if scanned is None:
                return None
            index = scanned
        while (
            self._token_at(index).type == TokenType.LBRACKET
            and self._token_at(index + 1).type == TokenType.RBRACKET
        ):
            index += 2
        return index

    def _scan_type_arguments(self, index: int) -> Optional[int]:
        index += 1  # <
        if self._token_at(index).type == TokenType.GT:
            return index + 1
        while True:
            if self._token_at(index).type == TokenType.QUESTION:
                index += 1
                if self._token_at(index).type == TokenType.IDENTIFIER and self._token_at(
                    index
                ).value in ("extends", "super"):
                    index += 1
                    index = self._scan_type(index)
                elif self._token_at(index).type == TokenType.SUPER:
                    index = self._scan_type(index + 1)
            else:
                index = self._scan_type(index)
            if index is None:
                return None
            if self._token_at(index).type == TokenType.COMMA:
                index += 1
                continue
            if self._token_at(index).type == TokenType.GT:
                return index + 1
            return None

    def _closing_paren(self, index: int) -> Optional[int]:
        """Index of the `)` matching the `(` at `index`."""
        depth = 0
        while index < len(self.tokens):
            token_type = self.tokens[index].type
            if token_type in (TokenType.LPAREN, TokenType.SELECTION):
                depth += 1
            elif token_type == TokenType.RPAREN:
                depth -= 1
                if depth == 0:
                    return index
            elif token_type == TokenType.EOF:
                return None
            index += 1
        return None

    def _looks_like_type_method_reference(self) -> bool:
        """`List<String>::size` or `String[]::new`, whose target only parses as a type."""
        scanned = self._scan_type(self.pos)
        return (
            scanned is not None
            and self._token_at(scanned).type == TokenType.DOUBLE_COLON
            and self._token_at(scanned - 1).type in (TokenType.GT, TokenType.RBRACKET)
        )

    def _looks_like_lambda(self) -> bool:
        if self._in_case_label:
            return False
        if self._check(TokenType.IDENTIFIER):
            return self._peek().type == TokenType.ARROW
        if self._check(TokenType.LPAREN):
            closing = self._closing_paren(self.pos)
            return closing is not None and self._token_at(closing + 1).type == TokenType.ARROW
        return False

    def _looks_like_cast(self) -> bool:
        """Check for `(Type) operand` at the current `(`."""
        end = self._scan_type(self.pos + 1)
        if end is None or self._token_at(end).type != TokenType.RPAREN:
            return False
        if self._peek().value in PRIMITIVE_TYPES:
            return True
        # Reference types: the last name segment must look like a type
        index = end - 1
        while self._token_at(index).type in (TokenType.RBRACKET, TokenType.LBRACKET):
            index -= 1
        last_name = self._token_at(index)
        if last_name.type == TokenType.IDENTIFIER and not last_name.value[:1].isupper():
            return False
        return self._token_at(end + 1).type in OPERAND_START_TOKENS

    def _looks_like_declaration(self) -> bool:
        """Check for `Type name` followed by `=`, `;`, `,`, `:` or `[`."""
        if self._check_word("var") and self._peek().type == TokenType.IDENTIFIER:
            return True
        end = self._scan_type(self.pos)
        if end is None or self._token_at(end).type != TokenType.IDENTIFIER:
            return False
        return self._token_at(end + 1).type in (
            TokenType.ASSIGN,
            TokenType.SEMICOLON,
            TokenType.COMMA,
            TokenType.COLON,
            TokenType.LBRACKET,
            TokenType.EOF,
            TokenType.RBRACE,
        )

    def _bracket_opens_predicate(self) -> bool:
        """
        Classify the `[` at the current position.

        An index holds exactly one expression that is not itself a boolean
        test; anything else (nothing, several comma separated tests, or one
        test) is a predicate block.
        """
        start = self.pos
        if start in self._bracket_kinds:
            return self._bracket_kinds[start]

        self._speculating += 1
        try:
            self._advance()  # [
            if self._check(TokenType.RBRACKET):
                result = True
            else:
                first = self._parse_expression()
                if self._check(TokenType.COMMA):
                    result = True
                elif self._check(TokenType.RBRACKET):
                    result = _is_test(first)
                else:
                    result = False
        except ParserError:
            result = False
        finally:
            self.pos = start
            self._speculating -= 1

        self._bracket_kinds[start] = result
        return result

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    @_grammar_rule("type")
    def _parse_type(self, allow_dimensions: bool = True) -> TypeReference:
        """
        Parse a type.

        Examples:
            int, String[], java.util.Map<String, List<Integer>>, ArrayList<>
        """
        start = self._current
        name = self._expect_identifier("Expected type name")
        while self._check(TokenType.DOT) and self._peek().type == TokenType.IDENTIFIER:
            self._advance()
            name += "." + self._advance().value

        arguments: Optional[tuple[TypeReference, ...]] = None
        if self._check(TokenType.LT):
            opening = self._advance()
            args: list[TypeReference] = []
            if not self._check(TokenType.GT):
                args.append(self._parse_type_argument())
                while self._match(TokenType.COMMA):
                    args.append(self._parse_type_argument())
            if not self._check(TokenType.GT) and self._is_at_end():
                raise self._error_unclosed_delimiter("<", opening)
            self._expect(TokenType.GT, "Expected '>' after type arguments")
            arguments = tuple(args)

        dimensions = 0
        if allow_dimensions:
            while self._check(TokenType.LBRACKET) and self._peek().type == TokenType.RBRACKET:
                self._advance()
                self._advance()
                dimensions += 1

        return TypeReference(name, arguments, dimensions, location=start.location)

    def _parse_type_argument(self) -> TypeReference:
        start = self._current
        if self._match(TokenType.QUESTION):
            if self._check_word("extends"):
                self._advance()
                return TypeReference("?", None, 0, "extends", self._parse_type(), start.location)
            if self._match(TokenType.SUPER):
                return TypeReference("?", None, 0, "super", self._parse_type(), start.location)
            return TypeReference("?", location=start.location)
        return self._parse_type()

    def _type_from_string(self, token: Token) -> TypeReference:
        """Build the target of `e#"java.math.BigDecimal"`."""
        text = decode_string_literal(token.value).strip()
        dimensions = 0
        while text.endswith("[]"):
            text = text[:-2].rstrip()
            dimensions += 1
        if not text:
            raise self._error("Empty type name in coercion", token)
        return TypeReference(text, None, dimensions, location=token.location)

    # -------------------------------------------------------------------------
    # Statement Parsing
    # -------------------------------------------------------------------------

    @_grammar_rule("statement")
    def _parse_statement(self) -> Statement:
        token = self._current
        token_type = token.type

        if token_type == TokenType.LBRACE:
            return self._parse_block()
        if token_type == TokenType.SEMICOLON:
            self._advance()
            return EmptyStatement(token.location)
        if token_type == TokenType.IF:
            return self._parse_if()
        if token_type == TokenType.WHILE:
            return self._parse_while()
        if token_type == TokenType.FOR:
            return self._parse_for()
        if token_type == TokenType.DO:
            return self._parse_do_while()
        if token_type == TokenType.TRY:
            return self._parse_try()
        if token_type == TokenType.SWITCH:
            selector, cases = self._parse_switch()
            return SwitchStatement(selector, cases, token.location)
        if token_type == TokenType.RETURN:
            return self._parse_return()
        if token_type == TokenType.THROW:
            return self._parse_throw()
        if token_type in (TokenType.BREAK, TokenType.CONTINUE):
            return self._parse_jump()
        if token_type == TokenType.FINAL:
            self._advance()
            declaration = self._parse_local_variable_declaration(final=True)
            self._expect_statement_end()
            return declaration

        if token_type == TokenType.IDENTIFIER:
            if token.value == "yield" and self._peek().type not in _YIELD_AS_NAME:
                return self._parse_yield()
            if self._peek().type == TokenType.COLON:
                self._advance()
                self._advance()
                return LabeledStatement(token.value, self._parse_statement(), token.location)
            if self._looks_like_declaration():
                declaration = self._parse_local_variable_declaration(final=False)
                self._expect_statement_end()
                return declaration

        expression = self._parse_expression()
        self._expect_statement_end()
        return ExpressionStatement(expression, token.location)

    def _expect_statement_end(self) -> None:
        """Require `;` unless the statement closes a block or the input."""
        if self._match(TokenType.SEMICOLON):
            return
        if self._check(TokenType.EOF, TokenType.RBRACE):
            return
        raise self._error_with_context("Expected ';' after statement", expected="';'")

    @_grammar_rule("block")
    def _parse_block(self) -> Block:
        opening = self._expect(TokenType.LBRACE, "Expected '{'")
        statements: list[Statement] = []
        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            statements.append(self._parse_statement())
        self._expect_closing(TokenType.RBRACE, opening)
        return Block(tuple(statements), opening.location)

    def _parse_condition(self) -> Expression:
        opening = self._expect(TokenType.LPAREN, "Expected '(' before condition")
        condition = self._parse_expression()
        self._expect_closing(TokenType.RPAREN, opening)
        return condition

    @_grammar_rule("ifStatement")
    def _parse_if(self) -> IfStatement:
        start = self._advance()  # if
        condition = self._parse_condition()
        then_branch = self._parse_statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()
        return IfStatement(condition, then_branch, else_branch, start.location)

    @_grammar_rule("whileStatement")
    def _parse_while(self) -> WhileStatement:
        start = self._advance()  # while
        condition = self._parse_condition()
        return WhileStatement(condition, self._parse_statement(), start.location)

    @_grammar_rule("doStatement")
    def _parse_do_while(self) -> DoWhileStatement:
        start = self._advance()  # do
        body = self._parse_statement()
        self._expect(TokenType.WHILE, "Expected 'while' after do body")
        condition = self._parse_condition()
        self._expect_statement_end()
        return DoWhileStatement(body, condition, start.location)

    @_grammar_rule("forStatement")
    def _parse_for(self) -> Union[ForStatement, ForEachStatement]:
        start = self._advance()  # for
        opening = self._expect(TokenType.LPAREN, "Expected '(' after 'for'")

        foreach = self._try_parse_foreach_header()
        if foreach is not None:
            variable_type, name, final = foreach
            iterable = self._parse_expression()
            self._expect_closing(TokenType.RPAREN, opening)
            body = self._parse_statement()
            return ForEachStatement(variable_type, name, iterable, body, final, start.location)

        init: tuple[ASTNode, ...] = ()
        if not self._check(TokenType.SEMICOLON):
            if self._check(TokenType.FINAL):
                self._advance()
                init = (self._parse_local_variable_declaration(final=True),)
            elif self._looks_like_declaration():
                init = (self._parse_local_variable_declaration(final=False),)
            else:
                init = tuple(self._parse_expression_list())
        self._expect(TokenType.SEMICOLON, "Expected ';' after for initializer")

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "Expected ';' after for condition")

        update: tuple[Expression, ...] = ()
        if not self._check(TokenType.RPAREN):
            update = tuple(self._parse_expression_list())
        self._expect_closing(TokenType.RPAREN, opening)

        body = self._parse_statement()
        return ForStatement(init, condition, update, body, start.location)

    def _try_parse_foreach_header(
        self,
    ) -> Optional[tuple[Optional[TypeReference], str, bool]]:
        """Consume `[final] [Type|var] name :` if present."""
        index = self.pos
        final = self._token_at(index).type == TokenType.FINAL
        if final:
            index += 1

        if (
            self._token_at(index).type == TokenType.IDENTIFIER
            and self._token_at(index + 1).type == TokenType.COLON
        ):
            self.pos = index
            name = self._advance().value
            self._advance()  # :
            return None, name, final

        end = self._scan_type(index)
        if (
            end is None
            or self._token_at(end).type != TokenType.IDENTIFIER
            or self._token_at(end + 1).type != TokenType.COLON
        ):
            return None

        self.pos = index
        variable_type: Optional[TypeReference] = None
        if self._check_word("var") and end == index + 1:
            self._advance()
        else:
            variable_type = self._parse_type()
        name = self._advance().value
        self._advance()  # :
        return variable_type, name, final

    def _parse_expression_list(self) -> list[Expression]:
        expressions = [self._parse_expression()]
        while self._match(TokenType.COMMA):
            expressions.append(self._parse_expression())
        return expressions

    @_grammar_rule("tryStatement")
    def _parse_try(self) -> TryStatement:
        start = self._advance()  # try
        if self._check(TokenType.LPAREN):
            raise self._error_with_context(
                "try-with-resources is not supported", code=ErrorCode.E0205
            )
        body = self._parse_block()

        catches: list[CatchClause] = []
        while self._check(TokenType.CATCH):
            catches.append(self._parse_catch())

        finally_block = None
        if self._match(TokenType.FINALLY):
            finally_block = self._parse_block()

        if not catches and finally_block is None:
            raise self._error_with_context(
                "Expected 'catch' or 'finally' after try block", expected="'catch' or 'finally'"
            )
        return TryStatement(body, tuple(catches), finally_block, start.location)

    @_grammar_rule("catchClause")
    def _parse_catch(self) -> CatchClause:
        start = self._advance()  # catch
        opening = self._expect(TokenType.LPAREN, "Expected '(' after 'catch'")
        final = self._match(TokenType.FINAL)
        types = [self._parse_type()]
        while self._match(TokenType.PIPE):
            types.append(self._parse_type())
        name = self._expect_identifier("Expected exception variable name")
        self._expect_closing(TokenType.RPAREN, opening)
        body = self._parse_block()
        return CatchClause(tuple(types), name, body, final, start.location)

    @_grammar_rule("returnStatement")
    def _parse_return(self) -> ReturnStatement:
        start = self._advance()  # return
        value = None
        if not self._check(TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF):
            value = self._parse_expression()
        self._expect_statement_end()
        return ReturnStatement(value, start.location)

    @_grammar_rule("throwStatement")
    def _parse_throw(self) -> ThrowStatement:
        start = self._advance()  # throw
        expression = self._parse_expression()
        self._expect_statement_end()
        return ThrowStatement(expression, start.location)

    @_grammar_rule("yieldStatement")
    def _parse_yield(self) -> YieldStatement:
        start = self._advance()  # yield
        value = self._parse_expression()
        self._expect_statement_end()
        return YieldStatement(value, start.location)

    def _parse_jump(self) -> Union[BreakStatement, ContinueStatement]:
        start = self._advance()
        label = None
        if self._check(TokenType.IDENTIFIER):
            label = self._advance().value
        self._expect_statement_end()
        if start.type == TokenType.BREAK:
            return BreakStatement(label, start.location)
        return ContinueStatement(label, start.location)

    @_grammar_rule("localVariableDeclaration")
    def _parse_local_variable_declaration(self, final: bool) -> LocalVariableDeclaration:
        """
        Parse `Type a = 1, b` or `var a = 1` (the trailing `;` is left).
        """
        start = self._current
        variable_type: Optional[TypeReference] = None
        if self._check_word("var") and self._peek().type == TokenType.IDENTIFIER:
            self._advance()
        else:
            variable_type = self._parse_type()

        declarators = [self._parse_declarator(variable_type)]
        while self._match(TokenType.COMMA):
            declarators.append(self._parse_declarator(variable_type))
        return LocalVariableDeclaration(variable_type, tuple(declarators), final, start.location)

    def _parse_declarator(self, variable_type: Optional[TypeReference]) -> VariableDeclarator:
        name = self._expect_identifier("Expected variable name")
        dimensions = 0
        while self._check(TokenType.LBRACKET) and self._peek().type == TokenType.RBRACKET:
            self._advance()
            self._advance()
            dimensions += 1

        initializer = None
        if self._match(TokenType.ASSIGN):
            is_array = dimensions > 0 or (variable_type is not None and variable_type.dimensions > 0)
            if is_array and self._check(TokenType.LBRACE):
                initializer = self._parse_array_initializer()
            else:
                initializer = self._parse_expression()
        return VariableDeclarator(name, dimensions, initializer)

    @_grammar_rule("arrayInitializer")
    def _parse_array_initializer(self) -> ArrayInitializer:
        opening = self._expect(TokenType.LBRACE, "Expected '{'")
        elements: list[Expression] = []
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.LBRACE):
                elements.append(self._parse_array_initializer())
            else:
                elements.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                break
        self._expect_closing(TokenType.RBRACE, opening)
        return ArrayInitializer(tuple(elements), opening.location)

    # -------------------------------------------------------------------------
    # Switch
    # -------------------------------------------------------------------------

    @_grammar_rule("switch")
    def _parse_switch(self) -> tuple[Expression, tuple[SwitchCase, ...]]:
        self._advance()  # switch
        selector = self._parse_condition()
        opening = self._expect(TokenType.LBRACE, "Expected '{' after switch selector")

        cases: list[SwitchCase] = []
        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            cases.append(self._parse_switch_case())
        self._expect_closing(TokenType.RBRACE, opening)

        if any(isinstance(c, SwitchRule) for c in cases) and any(
            isinstance(c, SwitchLabelGroup) for c in cases
        ):
            raise self._error("Cannot mix '->' and ':' cases in one switch", opening)
        return selector, tuple(cases)

    @_grammar_rule("switchLabel")
    def _parse_switch_case(self) -> SwitchCase:
        start = self._current
        labels: list[SwitchLabel] = []
        is_default = False

        if self._match(TokenType.DEFAULT):
            is_default = True
        elif self._match(TokenType.CASE):
            while True:
                if self._match(TokenType.DEFAULT):
                    is_default = True
                else:
                    labels.append(self._parse_case_label())
                if not self._match(TokenType.COMMA):
                    break
        else:
            raise self._error_with_context(
                "Expected 'case' or 'default'", expected="'case' or 'default'"
            )

        if self._match(TokenType.ARROW):
            body: Union[Expression, Block, ThrowStatement]
            if self._check(TokenType.LBRACE):
                body = self._parse_block()
            elif self._check(TokenType.THROW):
                body = self._parse_throw()
            else:
                body = self._parse_expression()
                self._expect(TokenType.SEMICOLON, "Expected ';' after case expression")
            return SwitchRule(tuple(labels), is_default, body, start.location)

        self._expect(TokenType.COLON, "Expected ':' or '->' after case label")
        statements: list[Statement] = []
        while not self._check(TokenType.CASE, TokenType.DEFAULT, TokenType.RBRACE, TokenType.EOF):
            statements.append(self._parse_statement())
        return SwitchLabelGroup(tuple(labels), is_default, tuple(statements), start.location)

    def _parse_case_label(self) -> SwitchLabel:
        end = self._scan_type(self.pos)
        if (
            end is not None
            and self._token_at(end).type == TokenType.IDENTIFIER
            and self._token_at(end + 1).type in (TokenType.ARROW, TokenType.COLON, TokenType.COMMA)
        ):
            start = self._current
            pattern_type = self._parse_type()
            name = self._advance().value
            return TypePattern(pattern_type, name, start.location)

        previous = self._in_case_label
        self._in_case_label = True
        try:
            return self._parse_expression(Precedence.TERNARY)
        finally:
            self._in_case_label = previous

    # -------------------------------------------------------------------------
    # Expression Parsing (Pratt Parser)
    # -------------------------------------------------------------------------

    def _infix_precedence(self) -> Optional[int]:
        token_type = self._current.type
        if token_type == TokenType.LBRACKET:
            if self._bracket_opens_predicate():
                return Precedence.MVEL_POSTFIX
            return Precedence.POSTFIX
        if token_type == TokenType.LBRACE and self._in_case_label:
            return None
        return PRECEDENCE_MAP.get(token_type)

    def _parse_expression(self, min_precedence: int = Precedence.LOWEST) -> Expression:
        """
        Parse an expression using precedence climbing.

        Args:
            min_precedence: Operators at or below this level end the expression
        """
        left = self._parse_prefix()

        while True:
            precedence = self._infix_precedence()
            if precedence is None or precedence <= min_precedence:
                break
            left = self._parse_infix(left, precedence)

        return left

    @_grammar_rule("primary")
    def _parse_prefix(self) -> Expression:
        """Parse a prefix operator or a primary expression."""
        token = self._current
        token_type = token.type

        if token_type in UNARY_OP_MAP:
            self._advance()
            operand = self._parse_expression(Precedence.UNARY)
            return UnaryExpression(UNARY_OP_MAP[token_type], operand, token.location)

        if token_type in (TokenType.INCREMENT, TokenType.DECREMENT):
            self._advance()
            operand = self._parse_expression(Precedence.UNARY)
            return IncrementExpression(token.value, operand, True, token.location)

        if token_type == TokenType.ISDEF:
            self._advance()
            return IsDefinedExpression(self._parse_expression(Precedence.UNARY), token.location)

        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        token = self._current
        token_type = token.type
        location = token.location

        # Literals
        if token_type == TokenType.INTEGER:
            self._advance()
            return IntegerLiteral(token.value, location)
        if token_type == TokenType.FLOAT:
            self._advance()
            return FloatLiteral(token.value, location)
        if token_type == TokenType.CHAR:
            self._advance()
            return CharLiteral(token.value, location)
        if token_type == TokenType.STRING:
            self._advance()
            return StringLiteral(decode_string_literal(token.value), token.value, location)
        if token_type == TokenType.TEXT_BLOCK:
            self._advance()
            return TextBlockLiteral(token.value, location)
        if token_type == TokenType.REGEX:
            self._advance()
            return RegexLiteral(token.value, location)
        if token_type == TokenType.UNIT:
            self._advance()
            match = _UNIT_LITERAL.match(token.value)
            if match is None:
                raise self._error(f"Invalid unit literal '{token.value}'", token)
            return UnitLiteral(match.group(1), match.group(2), location)
        if token_type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return BooleanLiteral(token_type == TokenType.TRUE, location)
        if token_type == TokenType.NULL:
            self._advance()
            return NullLiteral(location)
        if token_type == TokenType.EMPTY:
            self._advance()
            return EmptyLiteral(location)
        if token_type == TokenType.NIL:
            self._advance()
            return NilLiteral(location)
        if token_type == TokenType.UNDEFINED:
            self._advance()
            return UndefinedLiteral(location)

        if token_type == TokenType.IDENTIFIER:
            if self._looks_like_lambda():
                return self._parse_lambda()
            if self._looks_like_type_method_reference():
                return self._parse_method_reference(self._parse_type(), location)
            self._advance()
            return Identifier(token.value, location)

        if token_type == TokenType.THIS:
            self._advance()
            return ThisExpression(location)

        if token_type == TokenType.SUPER:
            self._advance()
            self._expect(TokenType.DOT, "Expected '.' after 'super'")
            return SuperFieldAccess(self._parse_member_name(), location)

        if token_type == TokenType.NEW:
            return self._parse_new()

        if token_type == TokenType.LPAREN:
            if self._looks_like_lambda():
                return self._parse_lambda()
            if self._looks_like_cast():
                return self._parse_cast()
            opening = self._advance()
            inner = self._parse_expression()
            self._expect_closing(TokenType.RPAREN, opening)
            return ParenthesizedExpression(inner, location)

        if token_type == TokenType.LBRACKET:
            return self._parse_bracket_literal()

        if token_type == TokenType.LBRACE:
            return self._parse_brace_map()

        if token_type == TokenType.SWITCH:
            selector, cases = self._parse_switch()
            return SwitchExpression(selector, cases, location)

        if token_type == TokenType.EOF:
            raise self._error_with_context("Unexpected end of input", expected="expression")
        raise self._error_with_context(
            f"Unexpected '{token.text}'", expected="expression"
        )

    @_grammar_rule("lambda")
    def _parse_lambda(self) -> LambdaExpression:
        start = self._current
        parameters: list[Parameter] = []
        parenthesized = self._check(TokenType.LPAREN)

        if parenthesized:
            opening = self._advance()
            while not self._check(TokenType.RPAREN):
                parameters.append(self._parse_lambda_parameter())
                if not self._match(TokenType.COMMA):
                    break
            self._expect_closing(TokenType.RPAREN, opening)
        else:
            parameters.append(Parameter(self._advance().value))

        self._expect(TokenType.ARROW, "Expected '->' in lambda")
        body: Union[Expression, Block]
        if self._check(TokenType.LBRACE):
            body = self._parse_block()
        else:
            body = self._parse_expression()
        return LambdaExpression(tuple(parameters), body, parenthesized, start.location)

    def _parse_lambda_parameter(self) -> Parameter:
        self._match(TokenType.FINAL)
        if self._check(TokenType.IDENTIFIER) and self._peek().type in (
            TokenType.COMMA,
            TokenType.RPAREN,
        ):
            return Parameter(self._advance().value)
        if self._check_word("var") and self._peek().type == TokenType.IDENTIFIER:
            self._advance()
            return Parameter(self._advance().value)
        parameter_type = self._parse_type()
        return Parameter(self._expect_identifier("Expected parameter name"), parameter_type)

    @_grammar_rule("castExpression")
    def _parse_cast(self) -> CastExpression:
        opening = self._advance()  # (
        cast_type = self._parse_type()
        self._expect_closing(TokenType.RPAREN, opening)
        operand = self._parse_expression(Precedence.UNARY)
        return CastExpression(cast_type, operand, opening.location)

    @_grammar_rule("creator")
    def _parse_new(self) -> Expression:
        start = self._advance()  # new
        created = self._parse_type(allow_dimensions=False)

        if self._check(TokenType.LBRACKET):
            dimensions: list[Optional[Expression]] = []
            while self._check(TokenType.LBRACKET):
                opening = self._advance()
                if self._check(TokenType.RBRACKET):
                    dimensions.append(None)
                else:
                    dimensions.append(self._parse_expression())
                self._expect_closing(TokenType.RBRACKET, opening)

            initializer = None
            if self._check(TokenType.LBRACE):
                if any(d is not None for d in dimensions):
                    raise self._error("Array creation with both sizes and an initializer")
                initializer = self._parse_array_initializer()
            elif dimensions[0] is None:
                raise self._error_with_context(
                    "Array creation needs a size or an initializer", expected="'{'"
                )
            return NewArray(created, tuple(dimensions), initializer, start.location)

        if self._check(TokenType.LPAREN):
            opening = self._advance()
            arguments = self._parse_arguments(opening)
            return NewObject(created, arguments, start.location)

        raise self._error_with_context(
            "Expected '(' or '[' after type in 'new'", expected="'(' or '['"
        )

    def _parse_arguments(self, opening: Token) -> tuple[Expression, ...]:
        """Parse call arguments after the opening `(`."""
        arguments: list[Expression] = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_argument(opening))
            while self._match(TokenType.COMMA):
                arguments.append(self._parse_argument(opening))
        self._expect_closing(TokenType.RPAREN, opening)
        return tuple(arguments)

    def _parse_method_reference(
        self, target: Union[Expression, TypeReference], location: Optional[SourceLocation]
    ) -> MethodReference:
        self._expect(TokenType.DOUBLE_COLON, "Expected '::'")
        if self._match(TokenType.NEW):
            return MethodReference(target, "new", location)
        return MethodReference(target, self._parse_member_name(), location)

    def _parse_argument(self, opening: Token) -> Expression:
        if self._is_at_end():
            raise self._error_unclosed_delimiter(CLOSING_DELIMITERS[TokenType.RPAREN], opening)
        return self._parse_expression()

    @_grammar_rule("inlineCollection")
    def _parse_bracket_literal(self) -> Expression:
        """Parse `[a, b]`, `[k: v]` or the empty map `[:]`."""
        opening = self._advance()  # [
        if self._check(TokenType.COLON) and self._peek().type == TokenType.RBRACKET:
            self._advance()
            self._advance()
            return MapLiteral((), opening.location)
        if self._match(TokenType.RBRACKET):
            return ListLiteral((), opening.location)

        first = self._parse_expression(Precedence.TERNARY)
        if self._check(TokenType.COLON):
            entries = self._parse_map_entries(first, TokenType.RBRACKET)
            self._expect_closing(TokenType.RBRACKET, opening)
            return MapLiteral(entries, opening.location)

        elements = [self._continue_expression(first)]
        while self._match(TokenType.COMMA):
            if self._check(TokenType.RBRACKET):
                break
            elements.append(self._parse_expression())
        self._expect_closing(TokenType.RBRACKET, opening)
        return ListLiteral(tuple(elements), opening.location)

    @_grammar_rule("inlineMap")
    def _parse_brace_map(self) -> MapLiteral:
        """Parse `{}` or `{k: v, ...}` in operand position."""
        opening = self._advance()  # {
        if self._match(TokenType.RBRACE):
            return MapLiteral((), opening.location)
        first = self._parse_expression(Precedence.TERNARY)
        if not self._check(TokenType.COLON):
            raise self._error_with_context("Expected ':' in map literal", expected="':'")
        entries = self._parse_map_entries(first, TokenType.RBRACE)
        self._expect_closing(TokenType.RBRACE, opening)
        return MapLiteral(entries, opening.location)

    def _parse_map_entries(
        self, first_key: Expression, closing: TokenType
    ) -> tuple[MapEntry, ...]:
        entries: list[MapEntry] = []
        key = first_key
        while True:
            self._expect(TokenType.COLON, "Expected ':' between map key and value")
            entries.append(MapEntry(key, self._parse_expression()))
            if not self._match(TokenType.COMMA) or self._check(closing):
                break
            key = self._parse_expression(Precedence.TERNARY)
        return tuple(entries)

    def _continue_expression(self, left: Expression) -> Expression:
        """Keep applying infix operators to an already parsed operand."""
        while True:
            precedence = self._infix_precedence()
            if precedence is None or precedence <= Precedence.LOWEST:
                return left
            left = self._parse_infix(left, precedence)

    @_grammar_rule("expression")
    def _parse_infix(self, left: Expression, precedence: int) -> Expression:
        """Parse an infix or postfix operator applied to `left`."""
        token = self._current
        token_type = token.type
        location = left.location or token.location

        # Member access and method invocation
        if token_type == TokenType.DOT:
            self._advance()
            name = self._parse_member_name()
            if self._check(TokenType.LPAREN):
                opening = self._advance()
                arguments = self._parse_arguments(opening)
                return MethodCall(FieldAccess(left, name, location), arguments, location)
            return FieldAccess(left, name, location)

        if token_type == TokenType.SAFE_DOT:
            self._advance()
            name = self._parse_member_name()
            if self._check(TokenType.LPAREN):
                opening = self._advance()
                arguments = self._parse_arguments(opening)
                return SafeMethodCall(left, name, arguments, location)
            return SafeFieldAccess(left, name, location)

        if token_type == TokenType.LPAREN:
            opening = self._advance()
            return MethodCall(left, self._parse_arguments(opening), location)

        if token_type == TokenType.DOUBLE_COLON:
            return self._parse_method_reference(left, location)

        if token_type in (TokenType.INCREMENT, TokenType.DECREMENT):
            self._advance()
            return IncrementExpression(token.value, left, False, location)

        if token_type == TokenType.LBRACKET:
            if precedence == Precedence.MVEL_POSTFIX:
                return self._parse_predicate_block(left)
            opening = self._advance()
            index = self._parse_expression()
            self._expect_closing(TokenType.RBRACKET, opening)
            return IndexAccess(left, index, location)

        if token_type == TokenType.SAFE_LBRACKET:
            opening = self._advance()
            index = self._parse_expression()
            self._expect_closing(TokenType.RBRACKET, opening)
            return SafeIndexAccess(left, index, location)

        # Binary operators (left associative)
        if token_type in BINARY_OP_MAP:
            self._advance()
            right = self._parse_expression(precedence)
            return BinaryExpression(left, BINARY_OP_MAP[token_type], right, location)

        if token_type in (TokenType.INSTANCEOF, TokenType.IS):
            self._advance()
            tested = self._parse_type()
            binding = None
            if self._check(TokenType.IDENTIFIER):
                binding = self._advance().value
            return InstanceOfExpression(left, tested, binding, location)

        # Ternary (right associative)
        if token_type == TokenType.QUESTION:
            self._advance()
            then_expr = self._parse_expression()
            self._expect(TokenType.COLON, "Expected ':' in conditional expression")
            else_expr = self._parse_expression()
            return ConditionalExpression(left, then_expr, else_expr, location)

        # Assignment (right associative)
        if token_type in ASSIGNMENT_OP_MAP:
            if not isinstance(
                left, (Identifier, FieldAccess, IndexAccess, SuperFieldAccess)
            ):
                raise self._error_with_context(
                    "Invalid assignment target", code=ErrorCode.E0204
                )
            self._advance()
            value = self._parse_expression()
            return AssignmentExpression(left, ASSIGNMENT_OP_MAP[token_type], value, location)

        # Lowest-level postfix forms
        if token_type == TokenType.PROJECTION:
            opening = self._advance()
            projection = self._parse_expression()
            self._expect_closing(TokenType.RBRACE, opening)
            return ProjectionExpression(left, projection, location)

        if token_type == TokenType.SELECTION:
            opening = self._advance()
            condition = self._parse_expression()
            self._expect_closing(TokenType.RPAREN, opening)
            return SelectionExpression(left, condition, location)

        if token_type == TokenType.HASH:
            self._advance()
            if self._check(TokenType.STRING):
                return CoercionExpression(
                    left, self._type_from_string(self._advance()), True, location
                )
            return CoercionExpression(left, self._parse_type(), False, location)

        if token_type == TokenType.TILDE:
            self._advance()
            pattern = self._parse_expression(Precedence.MVEL_POSTFIX)
            return RegexMatchExpression(left, pattern, location)

        if token_type == TokenType.LBRACE:
            return self._parse_mutation_block(left)

        raise self._error_with_context(f"Unexpected '{token.text}'")

    @_grammar_rule("predicateBlock")
    def _parse_predicate_block(self, target: Expression) -> PredicateBlock:
        opening = self._advance()  # [
        conditions: list[Expression] = []
        while not self._check(TokenType.RBRACKET):
            conditions.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                break
        self._expect_closing(TokenType.RBRACKET, opening)
        return PredicateBlock(target, tuple(conditions), target.location or opening.location)

    @_grammar_rule("mutationBlock")
    def _parse_mutation_block(self, target: Expression) -> MutationBlock:
        opening = self._advance()  # {
        operations: list[Expression] = []
        while not self._check(TokenType.RBRACE):
            start = self._current
            operation = self._parse_expression()
            match operation:
                case AssignmentExpression(target=Identifier()):
                    pass
                case MethodCall(callee=Identifier()):
                    pass
                case _:
                    raise self._error(
                        "Expected 'field = value' or a method call in block", start
                    )
            operations.append(operation)
            if not self._match(TokenType.COMMA, TokenType.SEMICOLON):
                break
        self._expect_closing(TokenType.RBRACE, opening)
        return MutationBlock(target, tuple(operations), target.location or opening.location)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _describe(token_type: TokenType) -> str:
    symbols = {
        TokenType.LPAREN: "(",
        TokenType.RPAREN: ")",
        TokenType.LBRACE: "{",
        TokenType.RBRACE: "}",
        TokenType.LBRACKET: "[",
        TokenType.RBRACKET: "]",
        TokenType.SEMICOLON: ";",
        TokenType.COLON: ":",
        TokenType.COMMA: ",",
        TokenType.DOT: ".",
        TokenType.ARROW: "->",
        TokenType.GT: ">",
        TokenType.WHILE: "while",
    }
    if token_type in symbols:
        return symbols[token_type]
    return token_type.name.lower()


def _is_test(expression: Expression) -> bool:
    """Whether an expression is a boolean test (decides `x[...]` shape)."""
    match expression:
        case BinaryExpression(operator=operator):
            return operator in TEST_OPERATORS
        case UnaryExpression(operator=UnaryOperator.NOT):
            return True
        case InstanceOfExpression() | IsDefinedExpression() | RegexMatchExpression():
            return True
        case _:
            return False


def detect_mode(text: str) -> ParseMode:
    """
    Guess the top-level production for a piece of text.

    Text ending in `;` or containing a control statement opener is a
    program; anything else is an expression.
    """
    trimmed = text.strip()
    if trimmed.endswith(";"):
        return ParseMode.PROGRAM
    if any(opener in trimmed for opener in ("if(", "for(", "while(", "switch(", "modify(")):
        return ParseMode.PROGRAM
    return ParseMode.EXPRESSION


def parse(
    text: str,
    mode: Union[ParseMode, str] = ParseMode.EXPRESSION,
    filename: Optional[str] = None,
) -> ASTNode:
    """
    Parse text into an AST.

    Args:
        text: Source text
        mode: "expression" for a single expression, "program" for a
            statement sequence
        filename: Optional filename for error reporting

    Returns:
        The expression node, or a CompilationUnit in program mode.

    Raises:
        ParserError: On any text that does not match the grammar
            (LexerError, a subclass, for invalid tokens).
    """
    mode = ParseMode(mode)
    logger.debug("Parsing %d characters as %s", len(text), mode.value)
    tokens = tokenize(text, filename)
    parser = Parser(tokens, source=text, filename=filename or "<input>")
    return parser.parse(mode)
