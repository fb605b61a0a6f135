"""
`input` tag: asks the host for a value.

    {% input name="city" description="Where do you live?" /%}  ->  $city.value

The value comes from the pre-supplied `RuntimeOptions.inputs` when present,
otherwise from the `on_user_input` callback. A `src` attribute must be a
`file://`, `http://` or `https://` URL and its extension decides the content
type when it is a known one.
"""

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, AsyncIterator
from urllib.parse import urlparse

from aimdoc.config import InputRequest
from aimdoc.core.nodes import Node
from aimdoc.exceptions import InputUnavailableError, InvalidSourceError
from aimdoc.execution.retries import maybe_await
from aimdoc.rendering import Fragment, RenderTag
from aimdoc.tags.registry import AttributeSpec, TagHandler

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("file://", "http://", "https://")

CONTENT_TYPES = {
    "json": "application/json",
    "txt": "text/plain",
    "csv": "text/csv",
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


def check_source(src: str) -> None:
    """Raise InvalidSourceError unless `src` is a file, http or https URL."""
    if not src.startswith(ALLOWED_SCHEMES):
        raise InvalidSourceError(src)


def source_extension(src: str) -> str:
    return PurePosixPath(urlparse(src).path).suffix.lstrip(".").lower()


def content_type_for(src: str, declared: str) -> str:
    """
    Content type implied by the extension of `src`.

    Params:
        src: Source URL
        declared: Type to keep when the extension is missing or unknown

    Returns:
        MIME type
    """
    return CONTENT_TYPES.get(source_extension(src), declared)


async def input_runtime(
    node: Node, config: "EngineConfig", context: "RuntimeContext"
) -> AsyncIterator[Fragment]:
    context.signal.raise_if_aborted()
    attrs = context.attributes(node, input_tag.attributes)
    name, description, type_, src = attrs["name"], attrs["description"], attrs["type"], attrs["src"]

    if src:
        check_source(src)
        type_ = content_type_for(src, type_)

    context.signal.raise_if_aborted()
    if name in context.options.inputs:
        value = context.options.inputs[name]
    elif context.options.on_user_input is not None:
        request = InputRequest(name=name, description=description, type=type_, src=src)
        logger.debug("Requesting input '%s' from the host", name)
        value = await context.signal.guard(maybe_await(context.options.on_user_input(request)))
    else:
        raise InputUnavailableError(name)

    variables = {"value": value, "type": type_, "description": description, "src": src}
    context.push(name, variables)
    yield RenderTag("input", {"name": name, **variables})


input_tag = TagHandler(
    render_name="input",
    runtime=input_runtime,
    attributes={
        "name": AttributeSpec("string", default="question"),
        "description": AttributeSpec("string", default=""),
        "type": AttributeSpec("string", default="text/plain"),
        "src": AttributeSpec("string"),
    },
    self_closing=True,
)
