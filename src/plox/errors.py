"""Error types with formatted source context."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from plox.tokens import Token, TokenType


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One problem found in the source, 1-based line and column."""

    message: str
    line: int
    column: int = 1
    length: int = 1
    where: str = ""

    def __str__(self) -> str:
        return f"[line {self.line}] Error{self.where}: {self.message}"


def error_at(token: Token, message: str) -> Diagnostic:
    """Build a diagnostic pointing at *token*, naming it in the message prefix."""
    if token.type == TokenType.EOF:
        where = " at end"
    else:
        where = f" at '{token.lexeme}'"
    return Diagnostic(message, token.line, token.column, max(1, len(token.lexeme)), where)


class LoxError(Exception):
    """Base class for every error the pipeline reports to its caller."""

    kind = "error"
    title = "error"

    def __init__(self, diagnostics: Iterable[Diagnostic], source: str = "") -> None:
        self.diagnostics = list(diagnostics)
        self.source = source
        super().__init__("\n".join(str(d) for d in self.diagnostics))

    @property
    def messages(self) -> list[str]:
        return [d.message for d in self.diagnostics]

    def format(self, filename: str = "<script>") -> str:
        """Render every diagnostic with its source line and a caret underline."""
        return "\n\n".join(self._format_one(d, filename) for d in self.diagnostics)

    def _format_one(self, diag: Diagnostic, filename: str) -> str:
        lines = self.source.splitlines()
        line_idx = diag.line - 1
        col = max(1, diag.column)

        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\r")
        else:
            source_line = ""

        # Stay within the line; EOF diagnostics sit one past its end
        underline_len = max(1, min(diag.length, len(source_line) - col + 1))

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(diag.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"{self.title}: {diag.message}\n"
            f"{' ' * gutter_width}--> {filename}:{diag.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )


class ScanError(LoxError):
    """Raised once at the end of scanning, bundling every lexical error."""

    kind = "syntax"
    title = "syntax error"


class ParseError(LoxError):
    """Raised once at the end of parsing, bundling every syntax error."""

    kind = "parse"
    title = "parse error"


class ResolveError(LoxError):
    """Raised once at the end of resolution, bundling every scope-rule violation."""

    kind = "resolve"
    title = "resolve error"


class EvalError(LoxError):
    """Raised on the first runtime error; evaluation does not continue."""

    kind = "runtime"
    title = "runtime error"

    def __init__(self, message: str, token: Token, source: str = "") -> None:
        self.message = message
        self.token = token
        diag = Diagnostic(message, token.line, token.column, max(1, len(token.lexeme)))
        super().__init__([diag], source)


STATIC_ERRORS: tuple[type[LoxError], ...] = (ScanError, ParseError, ResolveError)
