"""
`ai` tag: sends the text accumulated so far to the ai adapter.

    Tell me a joke about {% $frontmatter.input.topic %}.
    {% ai #joke model="openai/gpt-4o-mini" /%}

The result is yielded, appended to the text registry and bound as
`$<id>.result`. With `structuredOutputs`, a second call asks for an object
matching that JSON Schema, retried up to `max_retries` times.
"""

import logging
from typing import TYPE_CHECKING, Any, AsyncIterator

from aimdoc.core.nodes import Node
from aimdoc.execution.retries import with_retries
from aimdoc.rendering import Fragment, RenderTag, to_text
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/gpt-4o-mini"


def _select_tools(names: Any, context: "RuntimeContext") -> dict[str, Any]:
    if names is None:
        return {}
    if isinstance(names, str):
        names = [names]
    tools = {}
    for name in names:
        if name in context.options.tools:
            tools[name] = context.options.tools[name]
        else:
            logger.warning("Tool '%s' is not configured and is ignored", name)
    return tools


async def ai_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    attrs = context.attributes(node, ai_tag.attributes)
    prompt = context.text()
    request = {
        "model": attrs["model"],
        "prompt": prompt,
        "temperature": attrs["temperature"],
        "tools": _select_tools(attrs["tools"], context),
    }
    result = to_text(await context.call_adapter("ai", "generate_text", request))

    structured = None
    schema = attrs["structuredOutputs"]
    if schema:
        structured = await with_retries(
            lambda: context.call_adapter(
                "ai", "generate_object", {**request, "prompt": f"{prompt}\n{result}", "schema": schema}
            ),
            attempts=context.options.max_retries,
            signal=context.signal,
            operation="generate structured output",
            backoff=context.options.retry_backoff,
        )

    context.push(attrs["id"], {"result": result, "context": prompt, "structuredOutputs": structured})
    context.add_text(result)
    yield RenderTag("ai", {"id": attrs["id"], "model": attrs["model"]}, (result,))


ai_tag = TagHandler(
    render_name="ai",
    runtime=ai_runtime,
    attributes={
        "model": AttributeSpec("string", default=DEFAULT_MODEL),
        "id": AttributeSpec("string", default="ai"),
        "temperature": AttributeSpec("number", default=0.5),
        "structuredOutputs": AttributeSpec("object"),
        "tools": AttributeSpec("any"),
    },
    self_closing=True,
)
