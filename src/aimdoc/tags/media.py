"""
`media` tag: attaches an image, audio, video or document to the execution.

    {% media src="https://example.com/cat.png" description="A cat" id="photo" /%}

The source follows the same scheme rule as `input`. Without an explicit
`type`, the MIME type is taken from the source extension. The media itself is
not fetched; `$<id>.content` describes it for adapters that load it.
"""

from typing import TYPE_CHECKING, AsyncIterator

from aimdoc.core.nodes import Node
from aimdoc.rendering import Fragment, RenderTag
from aimdoc.tags.input import check_source, source_extension
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

MEDIA_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "mp4": "video/mp4",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "pdf": "application/pdf",
}

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def media_type_for(src: str) -> str:
    return MEDIA_TYPES.get(source_extension(src), DEFAULT_MEDIA_TYPE)


async def media_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    context.signal.raise_if_aborted()
    attrs = context.attributes(node, media_tag.attributes)
    src, description = attrs["src"], attrs["description"]
    check_source(src)
    type_ = attrs["type"] or media_type_for(src)

    context.signal.raise_if_aborted()
    content = {"src": src, "type": type_, "description": description, "content": None}
    context.push(attrs["id"], {"src": src, "type": type_, "description": description, "content": content})
    yield RenderTag("media", {"id": attrs["id"], **content})


media_tag = TagHandler(
    render_name="media",
    runtime=media_runtime,
    attributes={
        "src": AttributeSpec("string", required=True),
        "type": AttributeSpec("string"),
        "description": AttributeSpec("string"),
        "id": AttributeSpec("string", default="media"),
    },
    self_closing=True,
)
