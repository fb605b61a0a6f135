"""Arithmetic and comparison functions callable from document expressions."""

import logging
from typing import Any

from aimdoc.exceptions import DivisionByZeroError, InvalidArgumentError

logger = logging.getLogger(__name__)

Number = int | float


def to_number(function: str, value: Any) -> Number:
    """
    Coerce an expression argument to a number.

    Integers and floats pass through, numeric strings are parsed; booleans,
    None and anything else are rejected.

    Params:
        function: Name of the calling function (for the error message)
        value: The resolved argument

    Returns:
        int or float

    Raises:
        InvalidArgumentError: If the value is not numeric
    """
    if isinstance(value, bool) or value is None:
        raise InvalidArgumentError(function, value, "expected a number")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        try:
            return int(stripped)
        except ValueError:
            pass
        try:
            return float(stripped)
        except ValueError:
            pass
    raise InvalidArgumentError(function, value, "expected a number")


def add(a: Any, b: Any) -> Number:
    return to_number("add", a) + to_number("add", b)


def subtract(a: Any, b: Any) -> Number:
    return to_number("subtract", a) - to_number("subtract", b)


def multiply(a: Any, b: Any) -> Number:
    return to_number("multiply", a) * to_number("multiply", b)


def divide(a: Any, b: Any) -> Number:
    dividend = to_number("divide", a)
    divisor = to_number("divide", b)
    if divisor == 0:
        raise DivisionByZeroError(dividend)
    return dividend / divisor


def greater_than(a: Any, b: Any) -> bool:
    return to_number("greaterThan", a) > to_number("greaterThan", b)


def less_than(a: Any, b: Any) -> bool:
    return to_number("lessThan", a) < to_number("lessThan", b)


def greater_than_or_equal(a: Any, b: Any) -> bool:
    return to_number("greaterThanOrEqual", a) >= to_number("greaterThanOrEqual", b)


def less_than_or_equal(a: Any, b: Any) -> bool:
    return to_number("lessThanOrEqual", a) <= to_number("lessThanOrEqual", b)


def includes(collection: Any, item: Any) -> bool:
    """True when `collection` is a list containing `item`; False for non-lists."""
    if isinstance(collection, (list, tuple)):
        return item in collection
    logger.debug("includes() called on non-list %r", type(collection).__name__)
    return False
