"""
Standard function library available to every expression.

The library is closed: expressions can only call what is registered
here, and the names are read-only in the evaluation scope.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any


def _number(value: Any, name: str) -> float | int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"{name}() expects a number, got {type(value).__name__}")
    return value


def _unary(fn: Callable[[float], Any], name: str) -> Callable[..., Any]:
    def call(*args: Any) -> Any:
        if len(args) != 1:
            raise TypeError(f"{name}() takes exactly 1 argument ({len(args)} given)")
        return fn(_number(args[0], name))

    call.__name__ = name
    return call


def _pow(*args: Any) -> float:
    if len(args) != 2:
        raise TypeError(f"pow() takes exactly 2 arguments ({len(args)} given)")
    return math.pow(_number(args[0], "pow"), _number(args[1], "pow"))


def _round(x: float) -> int:
    # Halves round toward positive infinity: round(2.5) == 3, round(-2.5) == -2
    return math.floor(x + 0.5)


def _extremum(name: str, pick: Callable[..., Any]) -> Callable[..., Any]:
    def call(*args: Any) -> Any:
        values: Sequence[Any] = args
        if len(args) == 1 and isinstance(args[0], list):
            values = args[0]
        if not values:
            raise TypeError(f"{name}() requires at least one argument")
        return pick(_number(v, name) for v in values)

    call.__name__ = name
    return call


def _contains(*args: Any) -> bool:
    if len(args) != 2:
        raise TypeError(f"contains() takes exactly 2 arguments ({len(args)} given)")
    container, item = args
    if not isinstance(container, list | str):
        raise TypeError("contains() expects a list or string as its first argument")
    if isinstance(container, str) and not isinstance(item, str):
        return False
    return item in container


def _is_array(*args: Any) -> bool:
    if len(args) != 1:
        raise TypeError(f"isArray() takes exactly 1 argument ({len(args)} given)")
    return isinstance(args[0], list)


STANDARD_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "pow": _pow,
    "sqrt": _unary(math.sqrt, "sqrt"),
    "abs": _unary(abs, "abs"),
    "floor": _unary(math.floor, "floor"),
    "ceil": _unary(math.ceil, "ceil"),
    "round": _unary(_round, "round"),
    "min": _extremum("min", min),
    "max": _extremum("max", max),
    "sin": _unary(math.sin, "sin"),
    "cos": _unary(math.cos, "cos"),
    "tan": _unary(math.tan, "tan"),
    "log": _unary(math.log, "log"),
    "log10": _unary(math.log10, "log10"),
    "exp": _unary(math.exp, "exp"),
    "contains": _contains,
    "isArray": _is_array,
}


def is_function_name(name: str) -> bool:
    return name in STANDARD_FUNCTIONS
