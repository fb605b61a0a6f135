"""
Functions available to document expressions.

`DEFAULT_FUNCTIONS` maps the names used in documents (camelCase, as in the
Markdoc configuration) to plain Python callables. Plugins extend this table at
configuration time.
"""

from typing import Any, Callable

from aimdoc.functions.arithmetic import (
    add,
    divide,
    greater_than,
    greater_than_or_equal,
    includes,
    less_than,
    less_than_or_equal,
    multiply,
    subtract,
    to_number,
)
from aimdoc.functions.logic import and_, debug, default, equals, is_truthy, not_, or_

DEFAULT_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "equals": equals,
    "and": and_,
    "or": or_,
    "not": not_,
    "default": default,
    "debug": debug,
    "add": add,
    "subtract": subtract,
    "multiply": multiply,
    "divide": divide,
    "greaterThan": greater_than,
    "lessThan": less_than,
    "greaterThanOrEqual": greater_than_or_equal,
    "lessThanOrEqual": less_than_or_equal,
    "includes": includes,
}

__all__ = [
    "DEFAULT_FUNCTIONS",
    "add",
    "subtract",
    "multiply",
    "divide",
    "greater_than",
    "less_than",
    "greater_than_or_equal",
    "less_than_or_equal",
    "includes",
    "to_number",
    "equals",
    "and_",
    "or_",
    "not_",
    "default",
    "debug",
    "is_truthy",
]
