"""
Error types and source location tracking for the pymvel front end.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        offset: 0-indexed character offset from start of source
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class PyMvelError(Exception):
    """Base exception for all pymvel errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        parts.append(self.message)

        if self.source_line and self.location:
            parts.append(f"\n    {self.source_line}")
            # Caret under the offending column
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"\n{padding}^")

        return " ".join(parts) if not self.source_line else parts[0] + " " + "".join(parts[1:])


class ParserError(PyMvelError):
    """
    Raised when the source text does not match the grammar.

    Parsing is fail-fast: the first mismatch aborts with the line, column
    and the grammar rule that was being matched.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        rule: Optional[str] = None,
    ) -> None:
        self.rule = rule
        super().__init__(message, location, source_line)

    @property
    def line(self) -> int:
        return self.location.line if self.location else 0

    @property
    def column(self) -> int:
        return self.location.column if self.location else 0


class LexerError(ParserError):
    """Raised when the lexer encounters an invalid token or character."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        super().__init__(message, location, source_line, rule="token")


class RegistryError(PyMvelError):
    """Raised when a set of declarations cannot form a registry."""

    pass


class HostCompileError(PyMvelError):
    """
    Raised by a host compiler when generated source does not compile.

    Attributes:
        source_text: The generated source that was rejected
        details: Compiler output, one entry per reported problem
    """

    def __init__(
        self,
        message: str,
        source_text: str = "",
        details: Optional[list[str]] = None,
    ) -> None:
        self.source_text = source_text
        self.details = details or []
        super().__init__(message)

    def _format_message(self) -> str:
        if not self.details:
            return self.message
        lines = [self.message]
        for detail in self.details:
            lines.append(f"\n  - {detail}")
        return "".join(lines)


class EvaluatorNotImplementedError(PyMvelError, NotImplementedError):
    """Raised when an evaluator is called with an arity it does not support."""

    def __init__(self, method: str, evaluator: str = "") -> None:
        self.method = method
        self.evaluator = evaluator
        owner = f"{evaluator}." if evaluator else ""
        super().__init__(f"{owner}{method} is not implemented by this evaluator")
