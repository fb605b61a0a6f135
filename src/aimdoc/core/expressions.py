"""Attribute expressions: the values a tag attribute can hold besides plain literals.

The external compiler serializes deferred values with a `$$mdtype` marker
(`Variable` for `$a.b` references, `Function` for calls such as
`equals($x, 1)`). They are decoded here into an explicit sum type so the
resolver dispatches on the class instead of probing for marker fields:

    Expression = Literal | VariableRef | FunctionCall
"""

from typing import Any, TypeAlias

from attrs import field, frozen


@frozen
class Literal:
    """A value that resolves to itself."""

    value: Any


@frozen
class VariableRef:
    """Reference to a variable by dotted path, e.g. `$loop.index`."""

    path: tuple[str | int, ...]

    @classmethod
    def parse(cls, dotted: str) -> "VariableRef":
        """Build a reference from `a.b.c` (a leading `$` is ignored).

        Params:
            dotted: Dotted variable path.

        Returns:
            VariableRef with one path segment per dot-separated part.

        Raises:
            ValueError: If the path is empty.
        """
        dotted = dotted.lstrip("$").strip()
        if not dotted:
            raise ValueError("Variable path cannot be empty")
        return cls(tuple(dotted.split(".")))

    def __str__(self) -> str:
        return "$" + ".".join(str(segment) for segment in self.path)


@frozen
class FunctionCall:
    """Call of a configured function with positional and named arguments."""

    name: str
    args: tuple[Any, ...] = ()
    named: dict[str, Any] = field(factory=dict, hash=False)

    def __str__(self) -> str:
        parts = [repr(arg) for arg in self.args]
        parts += [f"{key}={value!r}" for key, value in self.named.items()]
        return f"{self.name}({', '.join(parts)})"


Expression: TypeAlias = Literal | VariableRef | FunctionCall


def decode_markdoc_value(value: Any) -> Any:
    """Decode a serialized Markdoc attribute value into expressions.

    Plain JSON values are returned unchanged; `$$mdtype` Variable/Function
    objects become `VariableRef` / `FunctionCall`; lists and dicts are decoded
    recursively so nested expressions are preserved.

    Params:
        value: JSON-compatible value from the compiler output.

    Returns:
        The decoded value.
    """
    if isinstance(value, list):
        return [decode_markdoc_value(item) for item in value]
    if not isinstance(value, dict):
        return value

    mdtype = value.get("$$mdtype")
    if mdtype == "Variable":
        return VariableRef(tuple(value.get("path", ())))
    if mdtype == "Function":
        parameters = value.get("parameters", {}) or {}
        positional = sorted(
            (key for key in parameters if str(key).isdigit()), key=lambda k: int(k)
        )
        args = tuple(decode_markdoc_value(parameters[key]) for key in positional)
        named = {
            str(key): decode_markdoc_value(item)
            for key, item in parameters.items()
            if not str(key).isdigit()
        }
        return FunctionCall(value["name"], args, named)
    return {key: decode_markdoc_value(item) for key, item in value.items()}
