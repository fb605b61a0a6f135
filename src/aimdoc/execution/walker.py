"""
Recursive traversal of a document tree.

`walk` turns one node into a lazy async stream of fragments. Tag nodes are
dispatched to the handler registered in the engine configuration; text nodes
are resolved and recorded in the text registry; every other node is a plain
container whose children are walked in order. Block containers end with a
line break once they have produced output. Each fragment is handed to the
consumer before the next one is computed.
"""

import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, Any, AsyncIterator

from aimdoc.core.nodes import BLOCKS, COMMENT, LINE_BREAKS, TEXT, Document, Node
from aimdoc.exceptions import ErrorContext, UnknownTagError
from aimdoc.rendering import Fragment, to_text

if TYPE_CHECKING:
    from aimdoc.execution.context import RuntimeContext

logger = logging.getLogger(__name__)


async def walk(node: Node, context: "RuntimeContext") -> AsyncIterator[Fragment]:
    """
    Execute a node and stream its fragments.

    Params:
        node: Node to execute
        context: Context of the branch the node belongs to

    Yields:
        Fragments in document order; None results of handlers are dropped

    Raises:
        UnknownTagError: If a tag node has no registered handler
        AbortedError: If the execution signal fires
    """
    context.signal.raise_if_aborted()

    if node.type == TEXT:
        text = to_text(context.resolve(node.attributes.get("content")))
        if text:
            context.add_text(text)
            yield text
        return
    if node.type == COMMENT:
        yield str(node.attributes.get("content", ""))
        return
    if node.type in LINE_BREAKS:
        context.add_text("\n")
        yield "\n"
        return

    if node.is_tag:
        handler = context.config.tags.get(node.name)
        if handler is None:
            raise UnknownTagError(
                node.name, ErrorContext(tag=node.name, lines=list(node.lines), scope=context.scope)
            )
        logger.debug("dispatch {%% %s %%} in %s", node.name, context.scope)
        stream = handler.runtime(node, context.config, context)
    elif node.type in context.config.nodes:
        stream = context.config.nodes[node.type].runtime(node, context.config, context)
    else:
        stream = context.walk_children(node.children)

    produced = False
    async with aclosing(stream):
        async for fragment in stream:
            if fragment is None:
                continue
            context.signal.raise_if_aborted()
            produced = True
            yield fragment

    # Block containers end their line, empty ones leave no trace.
    if produced and node.type in BLOCKS:
        context.add_text("\n")
        yield "\n"


async def walk_document(
    document: Document,
    context: "RuntimeContext",
    inputs: dict[str, Any] | None = None,
) -> AsyncIterator[Fragment]:
    """
    Execute a whole document in the given context.

    The resolved frontmatter inputs are pushed as the `frontmatter` frame
    (reachable as `$frontmatter.input.<name>`) before the root is walked.

    Params:
        document: Document to execute
        context: Context whose scope receives the frontmatter frame
        inputs: Values for the declared inputs; missing ones take their default
    """
    resolved = document.frontmatter.resolve_inputs(inputs or {})
    context.push("frontmatter", {"input": resolved})

    children = document.root.children
    for index, child in enumerate(children, start=1):
        await context.emit("step", f"Executing node {index} of {len(children)}")
        async with aclosing(walk(child, context)) as stream:
            async for fragment in stream:
                yield fragment
