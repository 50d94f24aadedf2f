"""Template errors and colored diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ein.tokens import Token


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass
class Diagnostic:
    """A single diagnostic message, optionally tied to a template file."""

    severity: Severity
    code: str
    message: str
    notes: list[str] = field(default_factory=list)
    file: str | None = None


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E200]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        if diag.file is not None:
            lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {diag.file}")

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class TemplateError(Exception):
    """A template failed to compile. Carries a single diagnostic."""

    code = "E000"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def diagnostic(self) -> Diagnostic:
        return Diagnostic(severity=Severity.ERROR, code=self.code, message=self.message)


class ParseError(TemplateError):
    """Structural error: unexpected token, premature EOF, bad tag."""

    code = "E200"


class LexicalError(ParseError):
    """The lexer reported an error token and the parser reached it."""

    code = "E100"

    def __init__(self, token: Token) -> None:
        super().__init__(f"unexpected error token: {token}")
        self.token = token


class TagError(ParseError):
    """The contents of a {{ ... }} tag have no recognized shape."""

    code = "E210"


class EmptyTagError(TagError):
    code = "E211"


class InternalError(Exception):
    """An implementation invariant was violated. Not a TemplateError."""

    code = "E900"

    @property
    def diagnostic(self) -> Diagnostic:
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=f"internal error: {self}",
            notes=["this is a bug in ein, not in the template"],
        )


class StreamClosedError(InternalError):
    """A token was requested after the lexer closed its channel."""
