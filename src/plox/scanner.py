"""Scanner: converts source text into a lazy token stream."""

from __future__ import annotations

from collections.abc import Iterator

from plox.errors import Diagnostic, ScanError
from plox.tokens import KEYWORDS, Token, TokenType, is_alnum, is_alpha, is_digit

_SINGLE: dict[str, TokenType] = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "*": TokenType.STAR,
    "%": TokenType.PERCENT,
}

# char -> (type without '=', type with '=')
_WITH_EQUAL: dict[str, tuple[TokenType, TokenType]] = {
    "!": (TokenType.BANG, TokenType.BANG_EQUAL),
    "=": (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
    "<": (TokenType.LESS, TokenType.LESS_EQUAL),
    ">": (TokenType.GREATER, TokenType.GREATER_EQUAL),
}

_ESCAPES: dict[str, str] = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


class Scanner:
    """Tokenize Lox source text into a stream of Token objects.

    Errors do not stop the scan. They are collected and raised together as a
    single ScanError when the end of input is reached, in place of the EOF
    token, so a consumer that stops early never sees errors for input it did
    not pull.
    """

    def __init__(self, source: str) -> None:
        self._source = source
        self._reset()

    def _reset(self) -> None:
        self._start = 0
        self._current = 0
        self._line = 1
        self._line_start = 0
        self._start_line = 1
        self._start_column = 1
        self._errors: list[Diagnostic] = []

    def scan_tokens(self) -> Iterator[Token]:
        """Yield tokens from the start of the source, ending with one EOF token."""
        self._reset()
        while not self._at_end():
            self._start = self._current
            self._start_line = self._line
            self._start_column = self._column()
            tok = self._scan_token()
            if tok is not None:
                yield tok

        if self._errors:
            raise ScanError(self._errors, self._source)

        yield Token(TokenType.EOF, "", None, self._line, self._column())

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _at_end(self) -> bool:
        return self._current >= len(self._source)

    def _column(self) -> int:
        return self._current - self._line_start + 1

    def _peek(self, offset: int = 0) -> str:
        idx = self._current + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._current]
        self._current += 1
        if ch == "\n":
            self._line += 1
            self._line_start = self._current
        return ch

    def _match(self, expected: str) -> bool:
        if self._peek() != expected:
            return False
        self._advance()
        return True

    def _make(self, tt: TokenType, literal: object = None) -> Token:
        lexeme = self._source[self._start : self._current]
        return Token(tt, lexeme, literal, self._start_line, self._start_column)

    def _error(self, message: str, line: int, column: int, length: int = 1) -> None:
        self._errors.append(Diagnostic(message, line, column, length))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _scan_token(self) -> Token | None:
        ch = self._advance()

        if ch in _SINGLE:
            return self._make(_SINGLE[ch])

        if ch in _WITH_EQUAL:
            plain, with_equal = _WITH_EQUAL[ch]
            return self._make(with_equal if self._match("=") else plain)

        if ch == "/":
            if self._match("/"):
                # Comment runs to end of line; the newline itself is left for the main loop
                while self._peek() != "\n" and not self._at_end():
                    self._advance()
                return None
            return self._make(TokenType.SLASH)

        if ch in " \r\t\n":
            return None

        if ch == '"':
            return self._string()

        if is_digit(ch):
            return self._number()

        if is_alpha(ch):
            return self._identifier()

        self._error(f"Unexpected character: '{ch}'.", self._start_line, self._start_column)
        return None

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _string(self) -> Token | None:
        chars: list[str] = []
        while self._peek() != '"' and not self._at_end():
            if self._peek() != "\\":
                chars.append(self._advance())
                continue

            line, column = self._line, self._column()
            self._advance()  # consume backslash
            if self._at_end():
                break
            ch = self._advance()
            if ch in _ESCAPES:
                chars.append(_ESCAPES[ch])
            else:
                self._error(f"Invalid escape sequence '\\{ch}'.", line, column, 2)
                chars.append(ch)

        if self._at_end():
            self._error("Unterminated string.", self._start_line, self._start_column)
            return None

        self._advance()  # closing quote
        return self._make(TokenType.STRING, "".join(chars))

    def _number(self) -> Token:
        while is_digit(self._peek()):
            self._advance()

        # A fraction needs digits on both sides of the dot
        if self._peek() == "." and is_digit(self._peek(1)):
            self._advance()
            while is_digit(self._peek()):
                self._advance()

        text = self._source[self._start : self._current]
        return self._make(TokenType.NUMBER, float(text))

    def _identifier(self) -> Token:
        while is_alnum(self._peek()):
            self._advance()
        text = self._source[self._start : self._current]
        return self._make(KEYWORDS.get(text, TokenType.IDENTIFIER))


def scan(source: str) -> Iterator[Token]:
    """Convenience function: lazily scan source text."""
    return Scanner(source).scan_tokens()


def tokenize(source: str) -> list[Token]:
    """Scan the whole source and return the token list (EOF included)."""
    return list(scan(source))
