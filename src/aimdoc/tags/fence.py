"""
Code fences: executed through the `code` adapter when one is registered.

The adapter's `eval` operation receives `{code, language, variables}` with the
variables visible from the fence. Its result is bound as `$<id>.result` (JSON
text) and rendered after the code. Without a `code` adapter the fence is
rendered unexecuted.
"""

import json
from typing import TYPE_CHECKING, AsyncIterator

from aimdoc.core.nodes import Node
from aimdoc.rendering import Fragment, RenderTag, to_text
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

_javascript_markers = ("console.log", "const ", "let ", "function")
_python_markers = ("print(", "def ", "import ")


def detect_language(code: str) -> str:
    """Guess the language of an unlabelled fence."""
    if any(marker in code for marker in _javascript_markers):
        return "javascript"
    if any(marker in code for marker in _python_markers):
        return "python"
    return "text"


async def fence_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    attrs = context.attributes(node, fence_node.attributes)
    code = attrs["content"]
    language = attrs["language"] or detect_language(code)
    code_tag = RenderTag("code", {"language": language}, (code,))

    if context.state.get_adapter("code") is None:
        yield RenderTag("fence", {"id": attrs["id"], "language": language}, (code_tag,))
        return

    variables = context.state.snapshot(context.scopes)
    result = await context.call_adapter(
        "code", "eval", {"code": code, "language": language, "variables": variables}
    )
    context.push(attrs["id"], {"result": json.dumps(result, default=str), "success": True})
    await context.emit(
        "output",
        {"type": "code", "content": result, "success": True, "data": {"code": code, "output": result}},
    )
    output = to_text(result)
    if output:
        context.add_text(output)
    yield RenderTag("fence", {"id": attrs["id"], "language": language}, (code_tag, output))


fence_node = TagHandler(
    render_name="fence",
    runtime=fence_runtime,
    attributes={
        "content": AttributeSpec("string", default=""),
        "language": AttributeSpec("string"),
        "id": AttributeSpec("string", default="code"),
    },
)
