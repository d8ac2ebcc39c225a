"""Native functions pre-defined in the global environment."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from plox.environment import Environment
from plox.functions import LoxCallable

if TYPE_CHECKING:
    from plox.interpreter import Interpreter


class NativeFunction(LoxCallable):
    """A host function exposed to Lox with a fixed arity."""

    __slots__ = ("name", "_arity", "_fn")

    def __init__(self, name: str, arity: int, fn: Callable[..., object]) -> None:
        self.name = name
        self._arity = arity
        self._fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: Interpreter, arguments: list[object]) -> object:
        return self._fn(*arguments)

    def __str__(self) -> str:
        return f"<native fn {self.name}>"


def _clock() -> float:
    return time.time()


BUILTINS: dict[str, NativeFunction] = {
    "clock": NativeFunction("clock", 0, _clock),
}


def define_builtins(env: Environment) -> None:
    """Seed *env* (the global frame) with every native function."""
    for name, fn in BUILTINS.items():
        env.values[name] = fn


def global_environment() -> Environment:
    """Create a fresh global frame with the built-ins defined."""
    env = Environment()
    define_builtins(env)
    return env
