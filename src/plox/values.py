"""Value semantics shared by the evaluator and the REPL: truthiness, equality, text."""

from __future__ import annotations


def is_truthy(value: object) -> bool:
    """``nil`` and ``false`` are falsy; everything else, including 0 and "", is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: object, b: object) -> bool:
    """Lox equality: same kind and same value, never coercing between kinds."""
    if a is None:
        return b is None
    # bool is an int subclass in Python; keep true != 1
    if type(a) is not type(b):
        return False
    return a == b


def format_number(value: float) -> str:
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def stringify(value: object) -> str:
    """Text written by ``print`` and used for string concatenation."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


# ANSI SGR codes for REPL echo on a terminal
_RESET = "\x1b[0m"
_GRAY = "\x1b[90m"
_YELLOW = "\x1b[33m"
_GREEN = "\x1b[32m"


def _color_for(value: object) -> str | None:
    if value is None:
        return _GRAY
    if isinstance(value, (bool, float)):
        return _YELLOW
    if isinstance(value, str):
        return _GREEN
    return None


def display(value: object, *, color: bool = False) -> str:
    """Text the REPL echoes for an expression result; strings are quoted.

    With *color*, nil is gray, booleans and numbers yellow, strings green.
    """
    text = f'"{value}"' if isinstance(value, str) else stringify(value)
    code = _color_for(value) if color else None
    if code is None:
        return text
    return f"{code}{text}{_RESET}"
