"""
`if` / `else` tags.

    {% if equals($x, 1) %}A{% else equals($x, 2) /%}B{% else /%}C{% /if %}

`else` tags split the children of an `if` into branches; an `else` carrying a
condition is an else-if. Conditions are resolved lazily in document order and
the first truthy branch is walked in its own scope.
"""

from typing import TYPE_CHECKING, Any, AsyncIterator
from uuid import uuid4

from attrs import frozen

from aimdoc.core.nodes import Node
from aimdoc.functions import is_truthy
from aimdoc.rendering import Fragment
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext


@frozen
class Branch:
    kind: str
    condition: Any
    children: tuple[Node, ...]


def collect_branches(node: Node) -> list[Branch]:
    """
    Split an `if` node into its branches.

    Params:
        node: The `if` tag node

    Returns:
        Branches in document order; the first is the `if` branch, an `else`
        without a condition gets the condition True
    """
    branches = [("if", node.attributes.get("primary"), [])]
    for child in node.children:
        if child.is_tag and child.tag == "else":
            condition = child.attributes["primary"] if "primary" in child.attributes else True
            branches.append(("else", condition, []))
        else:
            branches[-1][2].append(child)
    return [Branch(kind, condition, tuple(children)) for kind, condition, children in branches]


async def if_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    attrs = context.attributes(node, if_tag.attributes)
    id = attrs["id"] or f"if-{uuid4().hex[:8]}"

    for branch in collect_branches(node):
        condition = context.resolve(branch.condition)
        if not is_truthy(condition):
            continue
        branch_context = context.child()
        branch_context.push(id, {"condition": condition, "isTrue": True, "branch": branch.kind})
        rendered: list[Fragment] = []
        try:
            async for fragment in branch_context.walk_children(list(branch.children)):
                rendered.append(fragment)
                yield fragment
        finally:
            branch_context.release()
        context.add_rendered(rendered)
        return


async def else_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    # Only meaningful as a separator inside `if`.
    return
    yield


if_tag = TagHandler(
    render_name="if",
    runtime=if_runtime,
    attributes={
        "primary": AttributeSpec(deferred=True),
        "id": AttributeSpec("string"),
    },
)

else_tag = TagHandler(
    render_name="else",
    runtime=else_runtime,
    attributes={"primary": AttributeSpec(deferred=True)},
    self_closing=True,
)
