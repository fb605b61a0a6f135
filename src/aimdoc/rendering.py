"""Fragments produced by execution and their plain-text rendering.

A fragment is either a string or a `RenderTag`, a structured render-tree item
that hosts may present specially (e.g. a code block or a flow call banner).
Text rendering concatenates strings and recurses into tag children; tag
attributes are metadata and never rendered.
"""

import json
import math
from typing import Any, Iterable, TypeAlias

from attrs import field, frozen


@frozen
class RenderTag:
    """Structured render-tree item."""

    name: str
    attributes: dict[str, Any] = field(factory=dict, hash=False)
    children: tuple["Fragment", ...] = ()


Fragment: TypeAlias = str | RenderTag


def to_text(value: Any) -> str:
    """Stringify a resolved value the way documents expect to see it.

    None renders empty, booleans as `true`/`false`, integral floats without a
    fractional part, containers as JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def render_text(fragments: Iterable[Fragment | None]) -> str:
    """Concatenate fragments into plain text."""
    parts = []
    for fragment in fragments:
        if fragment is None:
            continue
        if isinstance(fragment, RenderTag):
            parts.append(render_text(fragment.children))
        else:
            parts.append(fragment)
    return "".join(parts)
