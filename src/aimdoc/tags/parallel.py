"""
`parallel` tag: walks every child concurrently.

Each child gets its own task and its own scope. The handler waits for all of
them or for the execution signal, whichever comes first; a failing child or an
abort cancels the children still running. Results are reassembled in child
order regardless of completion order.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, AsyncIterator

from aimdoc.core.nodes import Node
from aimdoc.rendering import Fragment, RenderTag, render_text
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

logger = logging.getLogger(__name__)


async def _collect(child: Node, context: "RuntimeContext") -> list[Fragment]:
    child_context = context.child()
    fragments: list[Fragment] = []
    try:
        async with aclosing(child_context.walk(child)) as stream:
            async for fragment in stream:
                fragments.append(fragment)
    finally:
        child_context.release()
    return fragments


async def parallel_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    attrs = context.attributes(node, parallel_tag.attributes)
    context.signal.raise_if_aborted()

    tasks = [asyncio.ensure_future(_collect(child, context)) for child in node.children]
    logger.debug("parallel %s: %d branch(es)", attrs["id"], len(tasks))
    try:
        results = await context.signal.guard(asyncio.gather(*tasks))
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    texts = [render_text(fragments) for fragments in results]
    context.push(attrs["id"], {"results": texts})
    for fragments in results:
        context.add_rendered(fragments)
    yield RenderTag(
        "parallel",
        {"id": attrs["id"]},
        tuple(fragment for fragments in results for fragment in fragments),
    )


parallel_tag = TagHandler(
    render_name="parallel",
    runtime=parallel_runtime,
    attributes={"id": AttributeSpec("string", default="parallel")},
)
