"""AST node types for parsed Lox programs.

Nodes are immutable and compared by identity (``eq=False``): the resolver's
locals map is keyed by the node object itself, so two ``Variable`` nodes for
the same name at different places must stay distinct keys.
"""

from __future__ import annotations

from dataclasses import dataclass

from plox.tokens import Token

# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class Literal:
    """Number, string, boolean, or nil constant."""

    value: object


@dataclass(frozen=True, slots=True, eq=False)
class Grouping:
    """Parenthesized expression."""

    expression: Expr


@dataclass(frozen=True, slots=True, eq=False)
class Unary:
    operator: Token
    right: Expr


@dataclass(frozen=True, slots=True, eq=False)
class Binary:
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, slots=True, eq=False)
class Logical:
    """Short-circuit ``and`` / ``or``."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, slots=True, eq=False)
class Variable:
    name: Token


@dataclass(frozen=True, slots=True, eq=False)
class Assign:
    name: Token
    value: Expr


@dataclass(frozen=True, slots=True, eq=False)
class Call:
    """Call expression; ``paren`` is the closing parenthesis, used for error lines."""

    callee: Expr
    paren: Token
    arguments: tuple[Expr, ...]


@dataclass(frozen=True, slots=True, eq=False)
class FunctionExpr:
    """Anonymous function literal: ``fun (a, b) { ... }``."""

    keyword: Token
    params: tuple[Token, ...]
    body: tuple[Stmt, ...]


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class ExpressionStmt:
    expression: Expr


@dataclass(frozen=True, slots=True, eq=False)
class PrintStmt:
    expression: Expr


@dataclass(frozen=True, slots=True, eq=False)
class VarStmt:
    name: Token
    initializer: Expr | None


@dataclass(frozen=True, slots=True, eq=False)
class BlockStmt:
    statements: tuple[Stmt, ...]


@dataclass(frozen=True, slots=True, eq=False)
class IfStmt:
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(frozen=True, slots=True, eq=False)
class WhileStmt:
    condition: Expr
    body: Stmt


@dataclass(frozen=True, slots=True, eq=False)
class BreakStmt:
    keyword: Token


@dataclass(frozen=True, slots=True, eq=False)
class ReturnStmt:
    keyword: Token
    value: Expr | None


@dataclass(frozen=True, slots=True, eq=False)
class FunctionStmt:
    """Named function declaration."""

    name: Token
    params: tuple[Token, ...]
    body: tuple[Stmt, ...]


Expr = Literal | Grouping | Unary | Binary | Logical | Variable | Assign | Call | FunctionExpr
Stmt = (
    ExpressionStmt
    | PrintStmt
    | VarStmt
    | BlockStmt
    | IfStmt
    | WhileStmt
    | BreakStmt
    | ReturnStmt
    | FunctionStmt
)
