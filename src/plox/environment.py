"""Runtime scope chain."""

from __future__ import annotations

from plox.errors import EvalError
from plox.tokens import Token


class Environment:
    """One frame of name -> value bindings linked to its lexical parent.

    Frames are shared by reference: a frame stays alive while any closure
    created in it, or any active call, still holds it.
    """

    def __init__(self, enclosing: Environment | None = None) -> None:
        self.values: dict[str, object] = {}
        self.enclosing = enclosing
        self.globals: Environment = self if enclosing is None else enclosing.globals

    @property
    def is_global(self) -> bool:
        return self.enclosing is None

    def define(self, name: Token, value: object) -> None:
        """Bind a new name in this frame.

        The global frame may rebind freely; any other frame rejects a second
        definition of the same name.
        """
        if not self.is_global and name.lexeme in self.values:
            raise EvalError(f"Variable '{name.lexeme}' has already been declared.", name)
        self.values[name.lexeme] = value

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                # Resolver and runtime disagree about nesting
                raise LookupError(f"internal error: no scope at distance {distance}")
            env = env.enclosing
        return env

    def get(self, name: Token, distance: int | None = None) -> object:
        values = self._frame(distance).values
        if name.lexeme in values:
            return values[name.lexeme]
        raise EvalError(f"Undefined variable '{name.lexeme}'.", name)

    def assign(self, name: Token, value: object, distance: int | None = None) -> None:
        values = self._frame(distance).values
        if name.lexeme not in values:
            raise EvalError(f"Undefined variable '{name.lexeme}'.", name)
        values[name.lexeme] = value

    def _frame(self, distance: int | None) -> Environment:
        """Frame a resolved distance points at, or the global frame when unresolved."""
        if distance is None:
            return self.globals
        return self.ancestor(distance)
