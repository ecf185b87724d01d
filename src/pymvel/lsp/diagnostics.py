"""
Diagnostic generation for the pymvel LSP.

This module converts lexer and parser errors, unresolved constructs and
translation fallbacks into LSP-compatible diagnostic messages for display
in editors.
"""

import logging
from typing import Optional, Union

from lsprotocol import types

from pymvel.compiler.lexer import Lexer
from pymvel.compiler.parser import ParseMode, Parser, detect_mode
from pymvel.compiler.registry import Registry
from pymvel.compiler.translator import TranslatedUnit, translate
from pymvel.utils.diagnostics import Diagnostic as CompilerDiagnostic
from pymvel.utils.diagnostics import DiagnosticLevel
from pymvel.utils.errors import LexerError, ParserError, PyMvelError

logger = logging.getLogger("pymvel-lsp")

SEVERITY_MAP = {
    DiagnosticLevel.ERROR: types.DiagnosticSeverity.Error,
    DiagnosticLevel.WARNING: types.DiagnosticSeverity.Warning,
    DiagnosticLevel.NOTE: types.DiagnosticSeverity.Information,
    DiagnosticLevel.HELP: types.DiagnosticSeverity.Hint,
}


class DiagnosticProvider:
    """
    Generates LSP diagnostics from pymvel source text.

    This provider runs the lexer, the parser and the translator, and
    collects syntax errors, unresolved constructs and translation notes
    for a document. The translation is kept for hover previews.
    """

    def __init__(
        self,
        source: str,
        uri: str,
        registry: Optional[Registry] = None,
        mode: Optional[Union[ParseMode, str]] = None,
    ) -> None:
        """
        Initialize the diagnostic provider.

        Args:
            source: The document text
            uri: The document URI for location information
            registry: Declared names available to the document
            mode: Parse mode; detected from the text when omitted
        """
        self.source = source
        self.uri = uri
        self.registry = registry or Registry.empty()
        self.mode = ParseMode(mode) if mode is not None else detect_mode(source)
        self.unit: Optional[TranslatedUnit] = None
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects
        """
        self._diagnostics = []
        self.unit = None

        # Phase 1: Lexer errors
        try:
            tokens = Lexer(self.source, filename=self.uri).tokenize()
        except LexerError as e:
            self._add_pymvel_error(e, types.DiagnosticSeverity.Error)
            return self._diagnostics

        # Phase 2: Parser errors
        parser = Parser(tokens, source=self.source, filename=self.uri)
        try:
            tree = parser.parse(self.mode)
        except ParserError as e:
            rich = parser.get_diagnostics()
            if rich:
                for diag in rich:
                    self._add_compiler_diagnostic(diag)
            else:
                self._add_pymvel_error(e, types.DiagnosticSeverity.Error)
            return self._diagnostics

        # Phase 3: Translation notes
        self.unit = translate(tree, self.registry)
        for diag in self.unit.diagnostics():
            self._add_compiler_diagnostic(diag)

        logger.debug(
            "%s: %d diagnostics (%s mode)", self.uri, len(self._diagnostics), self.mode.value
        )
        return self._diagnostics

    @property
    def diagnostics(self) -> list[types.Diagnostic]:
        """Diagnostics from the last run."""
        return list(self._diagnostics)

    def _add_pymvel_error(self, error: PyMvelError, severity: types.DiagnosticSeverity) -> None:
        """
        Add a pymvel error as an LSP diagnostic.

        Args:
            error: The error
            severity: The diagnostic severity
        """
        line = 0
        character = 0

        if error.location:
            line = max(0, error.location.line - 1)  # Convert to 0-indexed
            character = max(0, error.location.column - 1)

        # Underline up to the end of the offending token
        end_character = character + 1
        if error.source_line:
            rest_of_line = error.source_line[character:]
            for i, c in enumerate(rest_of_line):
                if c.isspace() or c in "()[]{},:;":
                    end_character = character + max(1, i)
                    break
            else:
                end_character = character + max(1, len(rest_of_line))

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=line, character=end_character),
                ),
                message=error.message,
                severity=severity,
                source="pymvel",
            )
        )

    def _add_compiler_diagnostic(self, diag: CompilerDiagnostic) -> None:
        """
        Add a rich compiler diagnostic as an LSP diagnostic.

        Args:
            diag: The compiler diagnostic
        """
        severity = SEVERITY_MAP.get(diag.level, types.DiagnosticSeverity.Error)

        line = 0
        character = 0
        end_line = 0
        end_character = 1

        span = diag.primary_span
        if span is not None:
            line = max(0, span.start_line - 1)
            character = max(0, span.start_col - 1)
            end_line = max(0, span.end_line - 1)
            end_character = max(0, span.end_col - 1)
            if end_line == line:
                end_character = max(character + 1, end_character)

        message_parts = [diag.message]
        message_parts.extend(f"note: {note}" for note in diag.notes)
        message_parts.extend(f"help: {help_msg}" for help_msg in diag.helps)

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=end_line, character=end_character),
                ),
                message="\n".join(message_parts),
                severity=severity,
                source="pymvel",
                code=diag.code,
            )
        )


def get_diagnostics_for_document(
    source: str,
    uri: str,
    registry: Optional[Registry] = None,
    mode: Optional[Union[ParseMode, str]] = None,
) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        source: The document text
        uri: The document URI
        registry: Declared names available to the document
        mode: Parse mode; detected from the text when omitted

    Returns:
        List of LSP diagnostics
    """
    provider = DiagnosticProvider(source, uri, registry, mode)
    return provider.get_diagnostics()
