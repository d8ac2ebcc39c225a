"""Static scope resolution: computes binding distances for local variables.

The resolver walks the program once with a stack of lexical scopes, one per
block and one per function body. Each scope maps a name to ``False`` while
its initializer is being resolved and ``True`` once it is defined. Names at
global scope are never tracked; references that match no scope are left out
of the locals map and looked up in the global frame at run time.
"""

from __future__ import annotations

from enum import Enum, auto

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
from plox.errors import Diagnostic, ResolveError, error_at
from plox.tokens import Token


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()


class LoopType(Enum):
    NONE = auto()
    LOOP = auto()


class Resolver:
    """Single-pass resolver producing the locals side table."""

    def __init__(self, source: str = "") -> None:
        self._source = source
        self._scopes: list[dict[str, bool]] = []
        self._locals: dict[Expr, int] = {}
        self._errors: list[Diagnostic] = []
        self._function = FunctionType.NONE
        self._loop = LoopType.NONE

    def resolve(self, statements: list[Stmt] | tuple[Stmt, ...]) -> dict[Expr, int]:
        """Resolve a program, raising one ResolveError for every violation found."""
        self._resolve_statements(statements)
        if self._errors:
            raise ResolveError(self._errors, self._source)
        return self._locals

    # ------------------------------------------------------------------
    # Scope stack
    # ------------------------------------------------------------------

    def _begin_scope(self) -> None:
        self._scopes.append({})

    def _end_scope(self) -> None:
        self._scopes.pop()

    def _declare(self, name: Token) -> None:
        if not self._scopes:
            return
        scope = self._scopes[-1]
        if name.lexeme in scope:
            self._errors.append(
                error_at(name, f"Variable with name '{name.lexeme}' already declared in this scope.")
            )
        scope[name.lexeme] = False

    def _define(self, name: Token) -> None:
        if not self._scopes:
            return
        self._scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr: Expr, name: Token) -> None:
        for depth, scope in enumerate(reversed(self._scopes)):
            if name.lexeme in scope:
                self._locals[expr] = depth
                return

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _resolve_statements(self, statements: list[Stmt] | tuple[Stmt, ...]) -> None:
        for stmt in statements:
            self._resolve_stmt(stmt)

    def _resolve_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, BlockStmt):
            self._begin_scope()
            self._resolve_statements(stmt.statements)
            self._end_scope()
        elif isinstance(stmt, VarStmt):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expr(stmt.initializer)
            self._define(stmt.name)
        elif isinstance(stmt, FunctionStmt):
            # Defined before the body so the function can call itself
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt.params, stmt.body)
        elif isinstance(stmt, ExpressionStmt):
            self._resolve_expr(stmt.expression)
        elif isinstance(stmt, PrintStmt):
            self._resolve_expr(stmt.expression)
        elif isinstance(stmt, IfStmt):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, WhileStmt):
            self._resolve_expr(stmt.condition)
            enclosing_loop = self._loop
            self._loop = LoopType.LOOP
            self._resolve_stmt(stmt.body)
            self._loop = enclosing_loop
        elif isinstance(stmt, BreakStmt):
            if self._loop is LoopType.NONE:
                self._errors.append(error_at(stmt.keyword, "Can't break outside of a loop."))
        elif isinstance(stmt, ReturnStmt):
            if self._function is FunctionType.NONE:
                self._errors.append(error_at(stmt.keyword, "Can't return from top-level code."))
            if stmt.value is not None:
                self._resolve_expr(stmt.value)
        else:
            raise TypeError(f"unknown statement node: {type(stmt).__name__}")

    def _resolve_function(self, params: tuple[Token, ...], body: tuple[Stmt, ...]) -> None:
        enclosing_function = self._function
        enclosing_loop = self._loop
        # A loop around the function does not make 'break' legal inside it
        self._function = FunctionType.FUNCTION
        self._loop = LoopType.NONE

        self._begin_scope()
        for param in params:
            self._declare(param)
            self._define(param)
        self._resolve_statements(body)
        self._end_scope()

        self._function = enclosing_function
        self._loop = enclosing_loop

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _resolve_expr(self, expr: Expr) -> None:
        if isinstance(expr, Variable):
            if self._scopes and self._scopes[-1].get(expr.name.lexeme) is False:
                self._errors.append(
                    error_at(expr.name, "Can't read local variable in its own initializer.")
                )
            self._resolve_local(expr, expr.name)
        elif isinstance(expr, Assign):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name)
        elif isinstance(expr, (Binary, Logical)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)
        elif isinstance(expr, Unary):
            self._resolve_expr(expr.right)
        elif isinstance(expr, Grouping):
            self._resolve_expr(expr.expression)
        elif isinstance(expr, Call):
            self._resolve_expr(expr.callee)
            for argument in expr.arguments:
                self._resolve_expr(argument)
        elif isinstance(expr, FunctionExpr):
            self._resolve_function(expr.params, expr.body)
        elif isinstance(expr, Literal):
            pass
        else:
            raise TypeError(f"unknown expression node: {type(expr).__name__}")


def resolve(statements: list[Stmt] | tuple[Stmt, ...], source: str = "") -> dict[Expr, int]:
    """Convenience function: resolve a program and return its locals map."""
    return Resolver(source).resolve(statements)
