"""Shared test fixtures and helpers."""

from __future__ import annotations

import io
import sys

import pytest

from plox.ast import Stmt
from plox.debug import format_ast
from plox.parser import parse
from plox.scanner import tokenize
from plox.session import Session
from plox.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns the statement list."""

    def _parse(source: str) -> list[Stmt]:
        return parse(source)

    return _parse


@pytest.fixture
def sexpr():
    """Return a helper that parses source and renders it as s-expressions."""

    def _sexpr(source: str) -> str:
        return format_ast(parse(source))

    return _sexpr


@pytest.fixture
def run_source():
    """Return a helper that runs source in a fresh session and returns printed lines."""

    def _run(source: str, repl: bool = False) -> list[str]:
        out = io.StringIO()
        Session(out=out).run(source, repl=repl)
        return out.getvalue().splitlines()

    return _run


@pytest.fixture
def host_recursion_limit():
    """Return a setter for the host recursion limit; the old limit is restored afterwards."""
    original = sys.getrecursionlimit()
    yield sys.setrecursionlimit
    sys.setrecursionlimit(original)


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_lexemes(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token lexemes match the expected list."""
    actual = [t.lexeme for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"
