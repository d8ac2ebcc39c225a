"""--debug AST dump as s-expressions."""

from __future__ import annotations

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
from plox.values import stringify


def dump_ast(statements: list[Stmt] | tuple[Stmt, ...], *, file: TextIO = sys.stderr) -> None:
    """Print one s-expression per top-level statement to *file*."""
    for stmt in statements:
        file.write(format_stmt(stmt) + "\n")


def format_ast(node: Expr | Stmt | list[Stmt] | tuple[Stmt, ...]) -> str:
    """Render a node, or a statement list joined by newlines."""
    if isinstance(node, (list, tuple)):
        return "\n".join(format_stmt(s) for s in node)
    if isinstance(node, _EXPR_TYPES):
        return format_expr(node)
    return format_stmt(node)


def _sexpr(head: str, *parts: str) -> str:
    return "(" + " ".join((head, *parts)) + ")"


def _params(params: tuple) -> str:
    return "(" + " ".join(p.lexeme for p in params) + ")"


def format_expr(expr: Expr) -> str:
    if isinstance(expr, Literal):
        return stringify(expr.value)
    if isinstance(expr, Grouping):
        return _sexpr("group", format_expr(expr.expression))
    if isinstance(expr, Unary):
        return _sexpr(expr.operator.lexeme, format_expr(expr.right))
    if isinstance(expr, (Binary, Logical)):
        return _sexpr(expr.operator.lexeme, format_expr(expr.left), format_expr(expr.right))
    if isinstance(expr, Variable):
        return expr.name.lexeme
    if isinstance(expr, Assign):
        return _sexpr("=", expr.name.lexeme, format_expr(expr.value))
    if isinstance(expr, Call):
        return _sexpr("call", format_expr(expr.callee), *(format_expr(a) for a in expr.arguments))
    if isinstance(expr, FunctionExpr):
        return _sexpr("fun", _params(expr.params), *(format_stmt(s) for s in expr.body))
    raise TypeError(f"unknown expression node: {type(expr).__name__}")


def format_stmt(stmt: Stmt) -> str:
    if isinstance(stmt, ExpressionStmt):
        return format_expr(stmt.expression)
    if isinstance(stmt, PrintStmt):
        return _sexpr("print", format_expr(stmt.expression))
    if isinstance(stmt, VarStmt):
        if stmt.initializer is None:
            return _sexpr("var", stmt.name.lexeme)
        return _sexpr("var", stmt.name.lexeme, format_expr(stmt.initializer))
    if isinstance(stmt, BlockStmt):
        return _sexpr("block", *(format_stmt(s) for s in stmt.statements))
    if isinstance(stmt, IfStmt):
        parts = [format_expr(stmt.condition), format_stmt(stmt.then_branch)]
        if stmt.else_branch is not None:
            parts.append(format_stmt(stmt.else_branch))
        return _sexpr("if", *parts)
    if isinstance(stmt, WhileStmt):
        return _sexpr("while", format_expr(stmt.condition), format_stmt(stmt.body))
    if isinstance(stmt, BreakStmt):
        return "(break)"
    if isinstance(stmt, ReturnStmt):
        if stmt.value is None:
            return "(return)"
        return _sexpr("return", format_expr(stmt.value))
    if isinstance(stmt, FunctionStmt):
        return _sexpr(
            "fun", stmt.name.lexeme, _params(stmt.params), *(format_stmt(s) for s in stmt.body)
        )
    raise TypeError(f"unknown statement node: {type(stmt).__name__}")


_EXPR_TYPES = (Literal, Grouping, Unary, Binary, Logical, Variable, Assign, Call, FunctionExpr)
