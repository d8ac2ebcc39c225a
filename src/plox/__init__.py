"""Plox: a tree-walk interpreter for the Lox scripting language."""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from plox.ast import Expr
    from plox.environment import Environment

__version__ = "0.1.0"


def run(
    source: str,
    *,
    environment: Environment | None = None,
    locals: dict[Expr, int] | None = None,
    repl: bool = False,
    out: TextIO | None = None,
) -> None:
    """Scan, parse, resolve, and execute one unit of Lox source.

    Raises ScanError, ParseError, ResolveError, or EvalError. Pass the same
    *environment* and *locals* on every call to keep earlier definitions.
    """
    from plox.builtins import global_environment
    from plox.session import Session

    session = Session(
        out=out,
        environment=environment if environment is not None else global_environment(),
        locals=locals if locals is not None else {},
    )
    session.run(source, repl=repl)
