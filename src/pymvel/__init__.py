"""
pymvel - An MVEL expression language front end.

pymvel lexes and parses MVEL expressions and statement programs into an
immutable syntax tree and translates that tree, guided by declared types,
into equivalent Java source text.
"""

from pymvel.compiler import Registry, transpile, translate
from pymvel.compiler.lexer import Lexer
from pymvel.compiler.parser import Parser, parse

__version__ = "0.1.0"
__all__ = [
    "transpile",
    "translate",
    "parse",
    "Lexer",
    "Parser",
    "Registry",
]
