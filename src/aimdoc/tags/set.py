"""
`set` tag: binds values under an id.

    {% set #user string="Ada" number=36 /%}  ->  $user.string, $user.number

Typed fields (`string`, `number`, `boolean`, `object`, `array`) are checked
against their name; other fields are bound as they resolve. All fields are
resolved against the state before the push, and every `set` pushes a new
frame, so a repeated id shadows the earlier binding.
"""

from typing import TYPE_CHECKING, AsyncIterator

from aimdoc.core.nodes import Node
from aimdoc.exceptions import MissingIdError
from aimdoc.rendering import Fragment, RenderTag, to_text
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

TYPED_FIELDS = ("string", "number", "boolean", "object", "array")


async def set_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    if node.attributes.get("id") is None:
        raise MissingIdError("set", context.error_context(node, "id"))
    attrs = context.attributes(node, set_tag.attributes)
    id = to_text(attrs.pop("id"))
    variables = {name: value for name, value in attrs.items() if name in node.attributes}
    context.push(id, variables)
    yield RenderTag("set", {"id": id, **variables})


set_tag = TagHandler(
    render_name="set",
    runtime=set_runtime,
    attributes={
        "id": AttributeSpec("string", required=True),
        **{name: AttributeSpec(name) for name in TYPED_FIELDS},
    },
    self_closing=True,
)
