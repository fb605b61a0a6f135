"""
`loop` tag: repeated, scoped walks of the tag's children.

    {% loop count=2 %}{% $loop.index %}{% /loop %}
    {% loop items=$names id="name" %}Hi {% $name.item %}{% /loop %}
    {% loop lessThan($counter.value, 3) %}...{% /loop %}

Exactly one driver is allowed: a `count`, a list of `items`, or a condition.
Every iteration runs in a fresh scope exposing `index` (0-based), `count`
(1-based), `total`, `isFirst`, `isLast` and `item` under the loop `id`.
Condition loops check the condition after each iteration, inside the scope of
the iteration that just finished.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator

from aimdoc.core.nodes import Node
from aimdoc.exceptions import InvalidLoopError
from aimdoc.functions import is_truthy
from aimdoc.rendering import Fragment
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

logger = logging.getLogger(__name__)


def _iteration_count(count: Any, node: Node, context: "RuntimeContext") -> int:
    if isinstance(count, float):
        if not count.is_integer():
            raise InvalidLoopError(f"count must be a whole number, got {count}", context.error_context(node, "count"))
        count = int(count)
    if count < 0:
        raise InvalidLoopError(f"count cannot be negative, got {count}", context.error_context(node, "count"))
    return count


async def loop_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    attrs = context.attributes(node, loop_tag.attributes)
    count, items, condition = attrs["count"], attrs["items"], attrs["primary"]

    drivers = [name for name, value in (("count", count), ("items", items), ("condition", condition)) if value is not None]
    if len(drivers) != 1:
        raise InvalidLoopError(
            "exactly one of count, items or a condition is required, got "
            + (", ".join(drivers) or "none"),
            context.error_context(node),
        )

    id = attrs["id"]
    if items is not None:
        values: list[Any] | None = list(items)
        total: int | None = len(values)
    elif count is not None:
        total = _iteration_count(count, node, context)
        values = [None] * total
    else:
        values, total = None, None
    logger.debug("loop %s: %s iteration(s)", id, total if total is not None else "conditional")

    index = 0
    while values is None or index < len(values):
        context.signal.raise_if_aborted()
        iteration = context.child()
        iteration.push(
            id,
            {
                "index": index,
                "count": index + 1,
                "total": total,
                "isFirst": index == 0,
                "isLast": total is not None and index == total - 1,
                "item": values[index] if values is not None else None,
            },
        )
        rendered: list[Fragment] = []
        try:
            async for fragment in iteration.walk_children(node.children):
                rendered.append(fragment)
                yield fragment
            keep_going = values is not None or is_truthy(iteration.resolve(condition))
        finally:
            iteration.release()
        context.add_rendered(rendered)
        if not keep_going:
            break
        index += 1
        # Condition loops may never suspend otherwise; give the timeout a chance.
        await asyncio.sleep(0)


loop_tag = TagHandler(
    render_name="loop",
    runtime=loop_runtime,
    attributes={
        "primary": AttributeSpec(deferred=True),
        "count": AttributeSpec("number"),
        "items": AttributeSpec("array"),
        "id": AttributeSpec("string", default="loop"),
    },
)
