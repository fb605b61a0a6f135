"""`group` tag: walks its children in order and passes their fragments through."""

from typing import TYPE_CHECKING, AsyncIterator

from aimdoc.core.nodes import Node
from aimdoc.rendering import Fragment
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext


async def group_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    async for fragment in context.walk_children(node.children):
        yield fragment


group_tag = TagHandler(
    render_name="group",
    runtime=group_runtime,
    attributes={"id": AttributeSpec("string")},
)
