"""
Built-in tag handlers.

`BUILTIN_TAGS` maps tag names to handlers, `BUILTIN_NODES` maps node types
that get special execution (code fences) to theirs. Both are merged with plugin
tags into a `TagRegistry` when an engine is configured.
"""

from aimdoc.tags.ai import ai_tag
from aimdoc.tags.conditionals import else_tag, if_tag
from aimdoc.tags.fence import fence_node
from aimdoc.tags.flow import flow_tag
from aimdoc.tags.group import group_tag
from aimdoc.tags.input import input_tag
from aimdoc.tags.loop import loop_tag
from aimdoc.tags.media import media_tag
from aimdoc.tags.parallel import parallel_tag
from aimdoc.tags.registry import AttributeSpec, TagHandler, TagRegistry
from aimdoc.tags.set import set_tag

BUILTIN_TAGS: dict[str, TagHandler] = {
    "if": if_tag,
    "else": else_tag,
    "loop": loop_tag,
    "parallel": parallel_tag,
    "set": set_tag,
    "flow": flow_tag,
    "input": input_tag,
    "media": media_tag,
    "group": group_tag,
    "ai": ai_tag,
}

BUILTIN_NODES: dict[str, TagHandler] = {
    "fence": fence_node,
}

__all__ = [
    "BUILTIN_TAGS",
    "BUILTIN_NODES",
    "AttributeSpec",
    "TagHandler",
    "TagRegistry",
]
