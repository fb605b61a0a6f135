"""Markdoc's built-in logical functions, with JS truthiness semantics."""

import json
import math
from typing import Any


def is_truthy(value: Any) -> bool:
    """
    JS-style truthiness.

    None, False, 0, 0.0, NaN and the empty string are falsy; everything else,
    including empty lists and dicts, is truthy.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def _same_kind(first: Any, other: Any) -> bool:
    # int and float are both JS numbers; bool is not.
    numeric = (int, float)
    if isinstance(first, numeric) and isinstance(other, numeric):
        return isinstance(first, bool) == isinstance(other, bool)
    return type(first) is type(other)


def equals(first: Any, *others: Any) -> bool:
    """Strict equality: values of different kinds are never equal."""
    return all(_same_kind(first, other) and other == first for other in others)


def and_(*values: Any) -> bool:
    return all(is_truthy(value) for value in values)


def or_(*values: Any) -> bool:
    return any(is_truthy(value) for value in values)


def not_(value: Any) -> bool:
    return not is_truthy(value)


def default(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


def debug(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)
