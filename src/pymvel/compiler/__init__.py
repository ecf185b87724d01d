"""
pymvel Compiler Package.

This package contains the expression language front end:
- Lexer: Tokenizes source text
- Parser: Produces an Abstract Syntax Tree in expression or program mode
- AST: Immutable node definitions and visitors
- Registry: Declared names and type descriptions
- Policy: Name-based heuristics used when type information is missing
- Translator: Rewrites the AST into Java source text
- Evaluator: Contract for hosts that compile the translated text
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional, Union

from pymvel.compiler.ast_nodes import ASTNode, ASTVisitor, BaseASTVisitor, CompilationUnit
from pymvel.compiler.evaluator import (
    DEFAULT_IMPORTS,
    Evaluator,
    EvaluatorSource,
    HostCompiler,
    render_evaluator_source,
)
from pymvel.compiler.lexer import Lexer, tokenize
from pymvel.compiler.parser import ParseMode, Parser, detect_mode, parse
from pymvel.compiler.policy import DefaultDisambiguationPolicy, DisambiguationPolicy
from pymvel.compiler.registry import (
    Declaration,
    FieldInfo,
    MethodInfo,
    Registry,
    TypeDescriptor,
    TypeInfo,
)
from pymvel.compiler.tokens import Token, TokenType
from pymvel.compiler.translator import (
    ReferencedNameCollector,
    TranslatedUnit,
    TranslationAmbiguity,
    TranslationContext,
    Translator,
    TranslatorOptions,
    UnresolvedConstruct,
    translate,
)

logger = logging.getLogger(__name__)

Declarations = Union[Iterable[Declaration], Mapping[str, str]]


def build_registry(
    declarations: Declarations = (),
    types: Iterable[TypeInfo] = (),
    type_names: Iterable[str] = (),
) -> Registry:
    """Build a registry from declarations or a `{name: type}` mapping."""
    if isinstance(declarations, Mapping):
        return Registry.from_mapping(declarations, types, type_names)
    return Registry.build(declarations, types, type_names)


def transpile(
    source: str,
    declarations: Declarations = (),
    *,
    mode: Optional[Union[ParseMode, str]] = None,
    types: Iterable[TypeInfo] = (),
    type_names: Iterable[str] = (),
    policy: Optional[DisambiguationPolicy] = None,
    options: Optional[TranslatorOptions] = None,
    filename: Optional[str] = None,
) -> TranslatedUnit:
    """
    Parse and translate source text in one call.

    Args:
        source: Expression or program text
        declarations: Bound names, as Declarations or a `{name: type}` mapping
        mode: "expression" or "program"; detected from the text when omitted
        types: Descriptions of declared types
        type_names: Types available for coercion and construction
        policy: Heuristics used when type information is missing
        options: Output settings
        filename: Optional filename for error reporting

    Returns:
        The translated unit

    Raises:
        ParserError: If the text does not parse
        RegistryError: If the declarations conflict
    """
    registry = build_registry(declarations, types, type_names)
    resolved_mode = detect_mode(source) if mode is None else ParseMode(mode)
    tree = parse(source, resolved_mode, filename)
    unit = translate(tree, registry, policy=policy, options=options)
    logger.debug(
        "Translated %s (%d names, %d fallbacks)",
        resolved_mode.value,
        len(unit.referenced_names),
        len(unit.ambiguities),
    )
    return unit


__all__ = [
    # Pipeline
    "transpile",
    "build_registry",
    # Lexing and parsing
    "Lexer",
    "tokenize",
    "Token",
    "TokenType",
    "Parser",
    "ParseMode",
    "parse",
    "detect_mode",
    # AST
    "ASTNode",
    "ASTVisitor",
    "BaseASTVisitor",
    "CompilationUnit",
    # Registry and policy
    "Declaration",
    "FieldInfo",
    "MethodInfo",
    "Registry",
    "TypeDescriptor",
    "TypeInfo",
    "DisambiguationPolicy",
    "DefaultDisambiguationPolicy",
    # Translation
    "translate",
    "Translator",
    "TranslationContext",
    "TranslatorOptions",
    "TranslatedUnit",
    "TranslationAmbiguity",
    "UnresolvedConstruct",
    "ReferencedNameCollector",
    # Evaluator contract
    "DEFAULT_IMPORTS",
    "Evaluator",
    "EvaluatorSource",
    "HostCompiler",
    "render_evaluator_source",
]
