"""Pipeline driver that keeps global state across program units."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TextIO, TypeVar

from plox.ast import Expr, Stmt
from plox.builtins import global_environment
from plox.environment import Environment
from plox.errors import EvalError
from plox.interpreter import DEFAULT_MAX_CALL_DEPTH, Interpreter, ensure_recursion_limit
from plox.parser import Parser
from plox.resolver import Resolver
from plox.scanner import scan

T = TypeVar("T")


@dataclass
class Session:
    """State carried from one program unit (file or REPL line) to the next.

    Every unit runs against the same global frame and feeds the same locals
    map, so functions and variables defined earlier stay usable.
    """

    out: TextIO | None = None
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    color: bool = False
    environment: Environment = field(default_factory=global_environment)
    locals: dict[Expr, int] = field(default_factory=dict)
    timings: dict[str, float] = field(default_factory=dict)
    _interpreter: Interpreter | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        # Parsing recurses too, so the limit must be up before the first unit
        ensure_recursion_limit(self.max_call_depth)

    @property
    def interpreter(self) -> Interpreter:
        if self._interpreter is None:
            self._interpreter = Interpreter(
                self.environment,
                self.locals,
                out=self.out,
                max_call_depth=self.max_call_depth,
                color=self.color,
            )
        return self._interpreter

    def _timed(self, phase: str, fn: Callable[[], T]) -> T:
        start = time.perf_counter()
        try:
            return fn()
        finally:
            self.timings[phase] = time.perf_counter() - start

    def parse(self, source: str) -> list[Stmt]:
        """Scan and parse one unit, timing each phase separately."""
        tokens = self._timed("scan", lambda: list(scan(source)))
        return self._timed("parse", lambda: Parser(tokens, source).parse())

    def resolve(self, statements: list[Stmt], source: str = "") -> dict[Expr, int]:
        resolved = self._timed("resolve", lambda: Resolver(source).resolve(statements))
        self.locals.update(resolved)
        return resolved

    def execute(self, statements: list[Stmt], source: str = "", repl: bool = False) -> None:
        try:
            self._timed("interpret", lambda: self.interpreter.interpret(statements, repl=repl))
        except EvalError as exc:
            exc.source = source
            raise

    def run(self, source: str, repl: bool = False) -> list[Stmt]:
        """Run one unit through every phase and return its statements."""
        self.timings.clear()
        statements = self.parse(source)
        self.resolve(statements, source)
        self.execute(statements, source, repl=repl)
        return statements
