"""
Pytest configuration and shared fixtures for pymvel tests.
"""

from typing import Optional, Union

import pytest

from pymvel.compiler.ast_nodes import ASTNode, CompilationUnit, Expression
from pymvel.compiler.lexer import Lexer
from pymvel.compiler.parser import ParseMode, Parser
from pymvel.compiler.registry import Declaration, Registry, TypeInfo
from pymvel.compiler.tokens import Token
from pymvel.compiler.translator import TranslatedUnit, TranslatorOptions, translate


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.mvel") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def parser_factory(lexer_factory):
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str) -> Parser:
        tokens = lexer_factory(source).tokenize()
        return Parser(tokens, source=source, filename="test.mvel")

    return _create_parser


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        return lexer_factory(source).tokenize()

    return _tokenize


@pytest.fixture
def parse_expression(parser_factory):
    """Fixture to parse source text as a single expression."""

    def _parse(source: str) -> Expression:
        return parser_factory(source).parse(ParseMode.EXPRESSION)

    return _parse


@pytest.fixture
def parse_program(parser_factory):
    """Fixture to parse source text as a statement sequence."""

    def _parse(source: str) -> CompilationUnit:
        return parser_factory(source).parse(ParseMode.PROGRAM)

    return _parse


@pytest.fixture
def registry_factory():
    """Factory fixture for registries built from `{name: type}` bindings."""

    def _create_registry(
        bindings: Optional[dict[str, str]] = None,
        types: tuple[TypeInfo, ...] = (),
        type_names: tuple[str, ...] = (),
    ) -> Registry:
        declarations = [Declaration.of(name, t) for name, t in (bindings or {}).items()]
        return Registry.build(declarations, types, type_names)

    return _create_registry


@pytest.fixture
def person_types() -> tuple[TypeInfo, ...]:
    """Type descriptions shared by the translation tests."""
    return (
        TypeInfo.of(
            "Person",
            fields={
                "name": "String",
                "age": "int",
                "salary": "java.math.BigDecimal",
                "address": "Address",
            },
            public_fields={"nickName": "String"},
            methods={"isActive": "boolean", "fullName": "String"},
        ),
        TypeInfo.of("Address", fields={"city": "String"}),
    )


@pytest.fixture
def translate_source(parser_factory, registry_factory):
    """Fixture to parse and translate source text in one step."""

    def _translate(
        source: str,
        bindings: Optional[dict[str, str]] = None,
        *,
        types: tuple[TypeInfo, ...] = (),
        mode: Union[ParseMode, str] = ParseMode.EXPRESSION,
        options: Optional[TranslatorOptions] = None,
    ) -> TranslatedUnit:
        tree: ASTNode = parser_factory(source).parse(ParseMode(mode))
        registry = registry_factory(bindings, types)
        return translate(tree, registry, options=options)

    return _translate
