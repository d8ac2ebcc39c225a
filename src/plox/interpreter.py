"""Tree-walking evaluator for resolved Lox programs."""

from __future__ import annotations

import math
import sys
from typing import TextIO

from plox.ast import (
    Assign,
    Binary,
    BlockStmt,
    BreakStmt,
    Call,
    Expr,
    ExpressionStmt,
    FunctionExpr,
    FunctionStmt,
    Grouping,
    IfStmt,
    Literal,
    Logical,
    PrintStmt,
    ReturnStmt,
    Stmt,
    Unary,
    Variable,
    VarStmt,
    WhileStmt,
)
from plox.builtins import global_environment
from plox.environment import Environment
from plox.errors import EvalError
from plox.functions import BreakSignal, LoxCallable, LoxFunction, ReturnSignal
from plox.tokens import Token, TokenType
from plox.values import display, is_equal, is_truthy, stringify

DEFAULT_MAX_CALL_DEPTH = 256

# Generous upper bound on host frames used by one Lox call
_HOST_FRAMES_PER_CALL = 40


class Interpreter:
    """Executes statements against an environment chain.

    The locals map produced by the resolver is held by reference, so a caller
    that keeps feeding resolved programs into the same interpreter (a REPL)
    keeps every earlier closure's bindings valid.
    """

    def __init__(
        self,
        environment: Environment | None = None,
        locals: dict[Expr, int] | None = None,
        *,
        out: TextIO | None = None,
        max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
        color: bool = False,
    ) -> None:
        if environment is None:
            environment = global_environment()
        self.globals = environment.globals
        self._environment = environment
        self._locals: dict[Expr, int] = locals if locals is not None else {}
        self._out = out
        self.max_call_depth = max_call_depth
        self._call_depth = 0
        self.color = color
        ensure_recursion_limit(max_call_depth)

    def interpret(
        self,
        statements: list[Stmt] | tuple[Stmt, ...],
        locals: dict[Expr, int] | None = None,
        repl: bool = False,
    ) -> None:
        """Run statements in order, stopping at the first runtime error.

        In REPL mode the value of every expression statement is echoed.
        """
        if locals is not None and locals is not self._locals:
            self._locals.update(locals)
        try:
            for stmt in statements:
                if repl and isinstance(stmt, ExpressionStmt):
                    value = self.evaluate(stmt.expression)
                    self._write(display(value, color=self.color))
                else:
                    self.execute(stmt)
        except BreakSignal as signal:
            # Only reachable for programs that skipped the resolver
            raise EvalError("Can't break outside of a loop.", signal.keyword) from None
        except ReturnSignal as signal:
            raise EvalError("Can't return from top-level code.", signal.keyword) from None

    def _write(self, text: str) -> None:
        print(text, file=self._out if self._out is not None else sys.stdout)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute(self, stmt: Stmt) -> None:
        if isinstance(stmt, ExpressionStmt):
            self.evaluate(stmt.expression)
        elif isinstance(stmt, PrintStmt):
            self._write(stringify(self.evaluate(stmt.expression)))
        elif isinstance(stmt, VarStmt):
            value = None if stmt.initializer is None else self.evaluate(stmt.initializer)
            self._environment.define(stmt.name, value)
        elif isinstance(stmt, BlockStmt):
            self.execute_block(stmt.statements, Environment(self._environment))
        elif isinstance(stmt, IfStmt):
            if is_truthy(self.evaluate(stmt.condition)):
                self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                self.execute(stmt.else_branch)
        elif isinstance(stmt, WhileStmt):
            while is_truthy(self.evaluate(stmt.condition)):
                try:
                    self.execute(stmt.body)
                except BreakSignal:
                    break
        elif isinstance(stmt, BreakStmt):
            raise BreakSignal(stmt.keyword)
        elif isinstance(stmt, ReturnStmt):
            value = None if stmt.value is None else self.evaluate(stmt.value)
            raise ReturnSignal(stmt.keyword, value)
        elif isinstance(stmt, FunctionStmt):
            self._environment.define(stmt.name, LoxFunction(stmt, self._environment))
        else:
            raise TypeError(f"unknown statement node: {type(stmt).__name__}")

    def execute_block(self, statements: tuple[Stmt, ...], environment: Environment) -> None:
        """Run statements in *environment*, restoring the current frame afterwards."""
        previous = self._environment
        try:
            self._environment = environment
            for stmt in statements:
                self.execute(stmt)
        finally:
            self._environment = previous

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate(self, expr: Expr) -> object:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)
        if isinstance(expr, Unary):
            return self._unary(expr)
        if isinstance(expr, Binary):
            return self._binary(expr)
        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)
        if isinstance(expr, Variable):
            return self._environment.get(expr.name, self._locals.get(expr))
        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            self._environment.assign(expr.name, value, self._locals.get(expr))
            return value
        if isinstance(expr, Call):
            return self._call(expr)
        if isinstance(expr, FunctionExpr):
            return LoxFunction(expr, self._environment)
        raise TypeError(f"unknown expression node: {type(expr).__name__}")

    def _unary(self, expr: Unary) -> object:
        right = self.evaluate(expr.right)
        if expr.operator.type == TokenType.MINUS:
            if not isinstance(right, float):
                raise EvalError(f"Operand of {expr.operator.lexeme} must be a number.", expr.operator)
            return -right
        if expr.operator.type == TokenType.BANG:
            return not is_truthy(right)
        raise EvalError(f"Unknown unary operator '{expr.operator.lexeme}'.", expr.operator)

    def _binary(self, expr: Binary) -> object:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        op = expr.operator

        if op.type == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if op.type == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if op.type == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            raise EvalError("Operands of + must be numbers or strings.", op)

        a, b = _numbers(op, left, right)
        if op.type == TokenType.MINUS:
            return a - b
        if op.type == TokenType.STAR:
            return a * b
        if op.type == TokenType.SLASH:
            if b == 0:
                raise EvalError("Division by zero.", op)
            return a / b
        if op.type == TokenType.PERCENT:
            if b == 0:
                raise EvalError("Division by zero.", op)
            # Sign follows the dividend, as in C
            return math.fmod(a, b)
        if op.type == TokenType.GREATER:
            return a > b
        if op.type == TokenType.GREATER_EQUAL:
            return a >= b
        if op.type == TokenType.LESS:
            return a < b
        if op.type == TokenType.LESS_EQUAL:
            return a <= b
        raise EvalError(f"Unknown binary operator '{op.lexeme}'.", op)

    def _call(self, expr: Call) -> object:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise EvalError("Can only call functions and classes.", expr.paren)
        if len(arguments) != callee.arity():
            raise EvalError(
                f"Expected {callee.arity()} arguments but got {len(arguments)}.", expr.paren
            )
        if self._call_depth >= self.max_call_depth:
            raise EvalError("Stack overflow.", expr.paren)

        self._call_depth += 1
        try:
            return callee.call(self, arguments)
        except RecursionError:
            # Host stack ran out before max_call_depth did
            raise EvalError("Stack overflow.", expr.paren) from None
        finally:
            self._call_depth -= 1


def _numbers(op: Token, left: object, right: object) -> tuple[float, float]:
    if not isinstance(left, float) or not isinstance(right, float):
        raise EvalError(f"Operands of {op.lexeme} must be numbers.", op)
    return left, right


def ensure_recursion_limit(max_call_depth: int) -> None:
    """Raise the host recursion limit so deep Lox programs fit in Python's stack."""
    needed = max_call_depth * _HOST_FRAMES_PER_CALL + 1000
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)


def interpret(
    statements: list[Stmt] | tuple[Stmt, ...],
    *,
    locals: dict[Expr, int] | None = None,
    environment: Environment | None = None,
    repl: bool = False,
    out: TextIO | None = None,
) -> Interpreter:
    """Convenience function: execute resolved statements, optionally in a given global frame.

    Passing the same *environment* and *locals* dict on every call keeps
    definitions from earlier calls visible.
    """
    interpreter = Interpreter(environment, locals, out=out)
    interpreter.interpret(statements, repl=repl)
    return interpreter
