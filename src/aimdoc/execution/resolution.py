"""
Resolution of attribute expressions against execution state.

`resolve_value` is the single evaluator for the expression sum type defined in
`aimdoc.core.expressions`. It works on a `Snapshot` (visible variables plus the
function table) and never mutates state, so the same expression can be
re-evaluated safely, e.g. a loop condition after every iteration.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from aimdoc.core.expressions import FunctionCall, Literal, VariableRef
from aimdoc.exceptions import UnknownFunctionError


@dataclass(frozen=True)
class Snapshot:
    """
    Read-only view used for resolution.

    Params:
        variables: Variables visible to the requesting scope chain, keyed by
            frame id (plus the global `options.variables`)
        functions: Callable table available to function-call expressions
    """

    variables: Mapping[str, Any] = field(default_factory=dict)
    functions: Mapping[str, Callable[..., Any]] = field(default_factory=dict)


def resolve_value(value: Any, snapshot: Snapshot) -> Any:
    """
    Resolve an attribute value to a literal.

    Params:
        value: Literal, expression, or list/dict possibly containing expressions
        snapshot: State snapshot to resolve against

    Returns:
        The resolved value; missing variables resolve to None

    Raises:
        UnknownFunctionError: If a function call names an unconfigured function
        AIMError: Whatever the called function raises (e.g. DivisionByZeroError)
    """
    if isinstance(value, Literal):
        return value.value
    if isinstance(value, VariableRef):
        return resolve_path(value.path, snapshot.variables)
    if isinstance(value, FunctionCall):
        function = snapshot.functions.get(value.name)
        if function is None:
            raise UnknownFunctionError(value.name)
        args = [resolve_value(arg, snapshot) for arg in value.args]
        named = {key: resolve_value(arg, snapshot) for key, arg in value.named.items()}
        return function(*args, **named)
    if isinstance(value, (list, tuple)):
        return [resolve_value(item, snapshot) for item in value]
    if isinstance(value, dict):
        return {key: resolve_value(item, snapshot) for key, item in value.items()}
    return value


def resolve_path(path: tuple[str | int, ...], variables: Mapping[str, Any]) -> Any:
    """
    Walk a variable path through nested mappings and lists.

    Params:
        path: Path segments, e.g. ("loop", "index")
        variables: Root mapping

    Returns:
        Value at the path, or None as soon as a segment is missing
    """
    current: Any = variables
    for segment in path:
        current = _step(current, segment)
        if current is None:
            return None
    return current


def _step(container: Any, segment: str | int) -> Any:
    if isinstance(container, Mapping):
        if segment in container:
            return container[segment]
        return container.get(str(segment))
    if isinstance(container, (list, tuple)):
        try:
            index = int(segment)
        except (TypeError, ValueError):
            return None
        if -len(container) <= index < len(container):
            return container[index]
    return None
