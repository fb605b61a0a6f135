"""
`flow` tag: runs another document inside the current execution.

    {% flow path="./summarize.aim" input={text: $draft.result} /%}

The sub-document is loaded through the configured content resolver, compiled,
and walked in a child scope of the same execution, so it shares options,
adapters, plugins and the cancellation signal. Without an explicit `input`, the
ai adapter is asked to generate one matching the sub-flow's declared inputs
from the text accumulated so far.
"""

import json
import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping
from uuid import uuid4

from pydantic import BaseModel

from aimdoc.core.nodes import Document, Node
from aimdoc.dynamic import frontmatter_input_schema
from aimdoc.exceptions import AIMError, ExternalCallError
from aimdoc.execution.retries import maybe_await, with_retries
from aimdoc.execution.walker import walk_document
from aimdoc.rendering import Fragment, RenderTag
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

logger = logging.getLogger(__name__)


def _as_object(value: Any) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, Mapping):
        raise ValueError(f"expected an object, got {type(value).__name__}")
    return dict(value)


async def generate_flow_input(
    document: Document, context: "RuntimeContext", temperature: float
) -> dict[str, Any]:
    """
    Ask the ai adapter for an input object matching the sub-flow's declared inputs.

    Params:
        document: Compiled sub-flow
        context: Context of the calling `flow` tag
        temperature: Sampling temperature passed to the adapter

    Returns:
        Generated input, or {} when the sub-flow declares no inputs or no ai
        adapter is registered

    Raises:
        ExternalCallError: If generation keeps failing after the last retry
    """
    if not document.frontmatter.input:
        return {}
    if context.state.get_adapter("ai") is None:
        logger.info("No ai adapter registered; sub-flow inputs fall back to their defaults")
        return {}

    schema = frontmatter_input_schema(document.frontmatter)
    prompt = (
        f"Create an object that matches the following schema: {json.dumps(schema)}\n"
        f"Here is the context: {context.text()}"
    )

    async def generate() -> dict[str, Any]:
        result = await context.call_adapter(
            "ai",
            "generate_object",
            {"prompt": prompt, "schema": schema, "temperature": temperature},
        )
        return _as_object(result)

    return await with_retries(
        generate,
        attempts=context.options.max_retries,
        signal=context.signal,
        operation="generate flow input",
        backoff=context.options.retry_backoff,
    )


async def flow_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    signal = context.signal
    signal.raise_if_aborted()
    attrs = context.attributes(node, flow_tag.attributes)
    path = attrs["path"]
    id = attrs["id"] or f"flow-{uuid4().hex[:8]}"

    try:
        content = await signal.guard(maybe_await(context.options.get_content_resolver().load(path)))
    except AIMError:
        raise
    except Exception as exc:
        raise ExternalCallError("load flow", f"{path}: {exc}") from exc
    signal.raise_if_aborted()

    try:
        document = context.options.get_compiler().compile(content)
    except AIMError:
        raise
    except Exception as exc:
        raise ExternalCallError("compile flow", f"{path}: {exc}") from exc
    signal.raise_if_aborted()

    flow_input = attrs["input"]
    if flow_input is None:
        flow_input = await generate_flow_input(document, context, attrs["temperature"])

    await context.emit("log", f"Calling flow {path}")
    yield RenderTag("flow", {"id": id, "path": path, "input": flow_input})

    flow_context = context.child()
    rendered: list[Fragment] = []
    try:
        async with aclosing(walk_document(document, flow_context, flow_input)) as stream:
            async for fragment in stream:
                rendered.append(fragment)
                yield fragment
    finally:
        flow_context.release()
    context.add_rendered(rendered)

    signal.raise_if_aborted()
    context.push(id, {"input": flow_input, "path": path, "content": content})


flow_tag = TagHandler(
    render_name="flow",
    runtime=flow_runtime,
    attributes={
        "path": AttributeSpec("string", required=True),
        "id": AttributeSpec("string"),
        "input": AttributeSpec("object"),
        "temperature": AttributeSpec("number", default=0.5),
    },
    self_closing=True,
)
