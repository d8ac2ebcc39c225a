"""Callable values and the signals used for non-local exits."""

from __future__ import annotations

from typing import TYPE_CHECKING

from plox.ast import FunctionExpr, FunctionStmt
from plox.environment import Environment
from plox.errors import EvalError
from plox.tokens import Token

if TYPE_CHECKING:
    from plox.interpreter import Interpreter


class BreakSignal(Exception):
    """Unwinds to the nearest enclosing loop."""

    def __init__(self, keyword: Token) -> None:
        super().__init__()
        self.keyword = keyword


class ReturnSignal(Exception):
    """Unwinds to the nearest enclosing call, carrying the returned value."""

    def __init__(self, keyword: Token, value: object) -> None:
        super().__init__()
        self.keyword = keyword
        self.value = value


class LoxCallable:
    """Anything a Lox call expression can invoke."""

    __slots__ = ()

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        raise NotImplementedError


class LoxFunction(LoxCallable):
    """User-defined function closed over the environment it was defined in."""

    __slots__ = ("declaration", "closure")

    def __init__(self, declaration: FunctionStmt | FunctionExpr, closure: Environment) -> None:
        self.declaration = declaration
        self.closure = closure

    @property
    def name(self) -> str | None:
        if isinstance(self.declaration, FunctionStmt):
            return self.declaration.name.lexeme
        return None

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        # Parent is the closure, not the caller's frame
        env = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            env.define(param, argument)
        try:
            interpreter.execute_block(self.declaration.body, env)
        except ReturnSignal as signal:
            return signal.value
        except BreakSignal as signal:
            # Loops in the caller must not see a break from the callee
            raise EvalError("Can't break outside of a loop.", signal.keyword) from None
        return None

    def __str__(self) -> str:
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"
