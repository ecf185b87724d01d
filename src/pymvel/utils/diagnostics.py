"""
Rich diagnostics for the pymvel front end.

Syntax errors, translation fallbacks and unresolved constructs are all
reported through the same `Diagnostic` type so that tools (the language
server, test helpers, command-line wrappers) can render them uniformly.

Example output:
    warning[W0301]: no type information for 'user', assumed accessor 'getName()'
      --> rule.mvel:1:6
       |
     1 | user.name == "x"
       |      ^^^^
       |
       = help: declare 'user' in the registry to resolve this access
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of diagnostic codes.

    Codes are organized by category:
    - E01xx: Lexical errors
    - E02xx: Syntax errors
    - W03xx: Translation notes (fallbacks and unresolved constructs)
    """

    # Lexical errors: E01xx
    E0101 = "E0101"  # unexpected character
    E0102 = "E0102"  # unterminated literal
    E0103 = "E0103"  # unterminated comment
    E0104 = "E0104"  # invalid number
    E0105 = "E0105"  # invalid escape sequence

    # Syntax errors: E02xx
    E0201 = "E0201"  # unexpected token
    E0202 = "E0202"  # unclosed delimiter
    E0203 = "E0203"  # missing token
    E0204 = "E0204"  # invalid expression
    E0205 = "E0205"  # invalid statement

    # Translation notes: W03xx
    W0301 = "W0301"  # accessor assumed without type information
    W0302 = "W0302"  # collection shape guessed from the name
    W0303 = "W0303"  # public field guessed from the name
    W0304 = "W0304"  # unit literal has no conversion
    W0305 = "W0305"  # field write cannot be chained
    W0306 = "W0306"  # member not declared on a known type
    W0307 = "W0307"  # nested safe navigation left unresolved


ERROR_DESCRIPTIONS: dict[str, str] = {
    ErrorCode.E0101: "unexpected character",
    ErrorCode.E0102: "unterminated literal",
    ErrorCode.E0103: "unterminated comment",
    ErrorCode.E0104: "invalid number",
    ErrorCode.E0105: "invalid escape sequence",
    ErrorCode.E0201: "unexpected token",
    ErrorCode.E0202: "unclosed delimiter",
    ErrorCode.E0203: "missing token",
    ErrorCode.E0204: "invalid expression",
    ErrorCode.E0205: "invalid statement",
    ErrorCode.W0301: "accessor assumed without type information",
    ErrorCode.W0302: "collection shape guessed from the name",
    ErrorCode.W0303: "public field guessed from the name",
    ErrorCode.W0304: "unit literal has no conversion",
    ErrorCode.W0305: "field write cannot be chained",
    ErrorCode.W0306: "member not declared on a known type",
    ErrorCode.W0307: "nested safe navigation left unresolved",
}


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    HELP = "help"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",
            DiagnosticLevel.WARNING: "\033[93m",
            DiagnosticLevel.NOTE: "\033[96m",
            DiagnosticLevel.HELP: "\033[92m",
        }
        return colors.get(self, "")


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """
    A span of source code, representing a range of characters.

    Attributes:
        start_line: 1-indexed starting line number
        start_col: 1-indexed starting column number
        end_line: 1-indexed ending line number
        end_col: 1-indexed ending column number (exclusive)
        filename: Optional filename for display
    """

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    filename: str = "<input>"

    @classmethod
    def from_location(
        cls, line: int, col: int, length: int = 1, filename: str = "<input>"
    ) -> "SourceSpan":
        """Create a span from a single location with a given length."""
        return cls(
            start_line=line,
            start_col=col,
            end_line=line,
            end_col=col + length,
            filename=filename,
        )

    def __str__(self) -> str:
        return f"{self.filename}:{self.start_line}:{self.start_col}"

    @property
    def is_multiline(self) -> bool:
        """Check if this span covers multiple lines."""
        return self.start_line != self.end_line

    @property
    def length(self) -> int:
        """Get the length of the span on a single line."""
        if self.is_multiline:
            return 1
        return max(1, self.end_col - self.start_col)


@dataclass(slots=True)
class DiagnosticLabel:
    """
    A label pointing to a specific span of source code.

    Attributes:
        span: The source span this label points to
        message: Optional message to display with the label
        is_primary: Whether this is the primary label (shown with ^^^)
    """

    span: SourceSpan
    message: str = ""
    is_primary: bool = True


@dataclass
class Diagnostic:
    """
    A diagnostic message with source context.

    Attributes:
        code: Diagnostic code (e.g., "E0201")
        level: Severity level
        message: The main diagnostic message
        labels: Source code labels
        notes: Additional notes to display
        helps: Help messages
    """

    code: str
    level: DiagnosticLevel
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    helps: list[str] = field(default_factory=list)

    @property
    def primary_span(self) -> Optional[SourceSpan]:
        """The span of the primary label, if any."""
        if not self.labels:
            return None
        return next((l.span for l in self.labels if l.is_primary), self.labels[0].span)

    def render(self, source_code: str, use_color: bool = True) -> str:
        """
        Render this diagnostic as a formatted string.

        Args:
            source_code: The original source code for context
            use_color: Whether to use ANSI color codes

        Returns:
            A formatted multi-line string representation
        """
        lines: list[str] = []
        source_lines = source_code.splitlines()

        reset = "\033[0m" if use_color else ""
        bold = "\033[1m" if use_color else ""
        level_color = self.level.color_code() if use_color else ""
        blue = "\033[94m" if use_color else ""
        green = "\033[92m" if use_color else ""

        level_str = self.level.value
        if self.code:
            header = (
                f"{level_color}{bold}{level_str}[{self.code}]{reset}: {bold}{self.message}{reset}"
            )
        else:
            header = f"{level_color}{bold}{level_str}{reset}: {bold}{self.message}{reset}"
        lines.append(header)

        span = self.primary_span
        if span is not None:
            lines.append(f"  {blue}-->{reset} {span}")

        if self.labels and source_lines:
            lines.append(f"   {blue}|{reset}")

            labels_by_line: dict[int, list[DiagnosticLabel]] = {}
            for label in self.labels:
                labels_by_line.setdefault(label.span.start_line, []).append(label)

            for line_num in sorted(labels_by_line):
                if not 1 <= line_num <= len(source_lines):
                    continue
                lines.append(f"{blue}{line_num:3} |{reset} {source_lines[line_num - 1]}")

                for label in labels_by_line[line_num]:
                    underline_char = "^" if label.is_primary else "-"
                    underline_color = level_color if label.is_primary else blue
                    padding = " " * (label.span.start_col - 1)
                    underline = underline_char * label.span.length

                    underline_line = f"   {blue}|{reset} {padding}{underline_color}{underline}{reset}"
                    if label.message:
                        underline_line += f" {underline_color}{label.message}{reset}"
                    lines.append(underline_line)

            lines.append(f"   {blue}|{reset}")

        for note in self.notes:
            lines.append(f"   {blue}={reset} {bold}note:{reset} {note}")

        for help_msg in self.helps:
            lines.append(f"   {blue}={reset} {green}help:{reset} {help_msg}")

        return "\n".join(lines)

    def to_simple_message(self) -> str:
        """Get a simple one-line message."""
        return f"[{self.code}] {self.message}"


# =============================================================================
# Diagnostic Builder (Fluent API)
# =============================================================================


class DiagnosticBuilder:
    """
    Fluent builder for constructing Diagnostic objects.

        emitter.error(ErrorCode.E0201, "expected ')'", span)
            .label(open_span, "to match this '('")
            .help("add the missing ')'")
            .emit()
    """

    def __init__(
        self,
        emitter: Optional["DiagnosticEmitter"],
        code: str,
        level: DiagnosticLevel,
        message: str,
        primary_span: Optional[SourceSpan] = None,
    ) -> None:
        self._emitter = emitter
        self._code = code
        self._level = level
        self._message = message
        self._labels: list[DiagnosticLabel] = []
        self._notes: list[str] = []
        self._helps: list[str] = []

        if primary_span:
            self._labels.append(DiagnosticLabel(primary_span, "", True))

    def label(
        self, span: SourceSpan, message: str = "", is_primary: bool = False
    ) -> "DiagnosticBuilder":
        """Add a source code label."""
        self._labels.append(DiagnosticLabel(span, message, is_primary))
        return self

    def secondary_label(self, span: SourceSpan, message: str = "") -> "DiagnosticBuilder":
        """Add a secondary label."""
        self._labels.append(DiagnosticLabel(span, message, False))
        return self

    def note(self, message: str) -> "DiagnosticBuilder":
        """Add a note."""
        self._notes.append(message)
        return self

    def help(self, message: str) -> "DiagnosticBuilder":
        """Add a help message."""
        self._helps.append(message)
        return self

    def build(self) -> Diagnostic:
        """Build the diagnostic without emitting."""
        return Diagnostic(
            code=self._code,
            level=self._level,
            message=self._message,
            labels=list(self._labels),
            notes=list(self._notes),
            helps=list(self._helps),
        )

    def emit(self) -> Diagnostic:
        """Build the diagnostic and hand it to the emitter."""
        diagnostic = self.build()
        if self._emitter is not None:
            self._emitter.add_diagnostic(diagnostic)
        return diagnostic


def diagnostic(
    code: str, level: DiagnosticLevel, message: str, span: Optional[SourceSpan] = None
) -> DiagnosticBuilder:
    """Start a diagnostic that is not collected by any emitter."""
    return DiagnosticBuilder(None, code, level, message, span)


# =============================================================================
# Diagnostic Emitter
# =============================================================================


class DiagnosticEmitter:
    """
    Collects and renders diagnostics for a source text.

    Usage:
        emitter = DiagnosticEmitter(source, "rule.mvel")
        emitter.error(ErrorCode.E0201, "expected ')'", span).emit()
        print(emitter.render_all())
    """

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.source_lines = source.splitlines()
        self.diagnostics: list[Diagnostic] = []

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic to the collection."""
        self.diagnostics.append(diagnostic)

    def error(
        self, code: str, message: str, span: Optional[SourceSpan] = None
    ) -> DiagnosticBuilder:
        """Create an error diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.ERROR, message, span)

    def warning(
        self, code: str, message: str, span: Optional[SourceSpan] = None
    ) -> DiagnosticBuilder:
        """Create a warning diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.WARNING, message, span)

    def note(
        self, code: str, message: str, span: Optional[SourceSpan] = None
    ) -> DiagnosticBuilder:
        """Create a note diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.NOTE, message, span)

    def has_errors(self) -> bool:
        """Check if any error diagnostics have been emitted."""
        return any(d.level == DiagnosticLevel.ERROR for d in self.diagnostics)

    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.ERROR)

    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.WARNING)

    def render_all(self, use_color: bool = True) -> str:
        """Render all diagnostics as a single string."""
        return "\n\n".join(d.render(self.source, use_color) for d in self.diagnostics)

    def clear(self) -> None:
        self.diagnostics.clear()


# =============================================================================
# String Similarity (Levenshtein Distance)
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate the Levenshtein (edit) distance between two strings.

    Args:
        s1: First string
        s2: Second string

    Returns:
        The minimum number of single-character edits turning s1 into s2
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar(
    name: str,
    candidates: list[str],
    max_distance: int = 2,
    max_suggestions: int = 3,
) -> list[str]:
    """
    Find similar names from a list of candidates ("did you mean?").

    Returns:
        Similar names sorted closest first, ties broken alphabetically
    """
    if not candidates:
        return []

    scored = []
    for candidate in candidates:
        if abs(len(candidate) - len(name)) > max_distance:
            continue
        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance <= max_distance:
            scored.append((candidate, distance))

    scored.sort(key=lambda x: (x[1], x[0]))
    return [candidate for candidate, _ in scored[:max_suggestions]]


# =============================================================================
# Common Diagnostic Helpers
# =============================================================================


def create_unexpected_token_diagnostic(
    emitter: DiagnosticEmitter,
    expected: str,
    found: str,
    span: SourceSpan,
) -> Diagnostic:
    """Create a diagnostic for an unexpected token."""
    return emitter.error(
        ErrorCode.E0201,
        f"expected {expected}, found '{found}'",
        span,
    ).emit()


def create_unclosed_delimiter_diagnostic(
    emitter: DiagnosticEmitter,
    delimiter: str,
    open_span: SourceSpan,
    error_span: SourceSpan,
) -> Diagnostic:
    """Create a diagnostic for an unclosed delimiter."""
    builder = emitter.error(
        ErrorCode.E0202,
        f"unclosed delimiter '{delimiter}'",
        error_span,
    )
    builder.secondary_label(open_span, f"unclosed '{delimiter}' starts here")
    builder.help(f"add matching closing '{_matching_delimiter(delimiter)}'")
    return builder.emit()


def _matching_delimiter(opening: str) -> str:
    matches = {"(": ")", "[": "]", "{": "}", "<": ">"}
    return matches.get(opening, opening)


__all__ = [
    "ErrorCode",
    "ERROR_DESCRIPTIONS",
    "DiagnosticLevel",
    "SourceSpan",
    "DiagnosticLabel",
    "Diagnostic",
    "DiagnosticBuilder",
    "DiagnosticEmitter",
    "diagnostic",
    "levenshtein_distance",
    "suggest_similar",
    "create_unexpected_token_diagnostic",
    "create_unclosed_delimiter_diagnostic",
]
