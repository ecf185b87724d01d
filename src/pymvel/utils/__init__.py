"""
pymvel Utilities Package.

Common utilities for error handling, source locations, and diagnostics.
"""

from pymvel.utils.diagnostics import (
    ERROR_DESCRIPTIONS,
    Diagnostic,
    DiagnosticBuilder,
    DiagnosticEmitter,
    DiagnosticLabel,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    create_unclosed_delimiter_diagnostic,
    create_unexpected_token_diagnostic,
    diagnostic,
    levenshtein_distance,
    suggest_similar,
)
from pymvel.utils.errors import (
    EvaluatorNotImplementedError,
    HostCompileError,
    LexerError,
    ParserError,
    PyMvelError,
    RegistryError,
    SourceLocation,
)

__all__ = [
    # Errors
    "PyMvelError",
    "LexerError",
    "ParserError",
    "RegistryError",
    "HostCompileError",
    "EvaluatorNotImplementedError",
    "SourceLocation",
    # Error codes
    "ErrorCode",
    "ERROR_DESCRIPTIONS",
    # Diagnostics
    "DiagnosticLevel",
    "SourceSpan",
    "DiagnosticLabel",
    "Diagnostic",
    "DiagnosticBuilder",
    "DiagnosticEmitter",
    "diagnostic",
    # String similarity
    "levenshtein_distance",
    "suggest_similar",
    # Helpers
    "create_unexpected_token_diagnostic",
    "create_unclosed_delimiter_diagnostic",
]
