"""Shorthand constructors for building document trees in code.

Hosts that compile documents themselves, and the test suite, use these helpers
instead of spelling out serialized Markdoc JSON:

    document(
        tag("if", {"primary": call("equals", var("x"), 1)},
            text("A"), tag("else"), text("B")),
    )
"""

from typing import Any

from aimdoc.core.expressions import FunctionCall, VariableRef
from aimdoc.core.nodes import COMMENT, DOCUMENT, FENCE, TAG, TEXT, Document, Frontmatter, Node


def var(path: str) -> VariableRef:
    return VariableRef.parse(path)


def call(name: str, *args: Any, **named: Any) -> FunctionCall:
    return FunctionCall(name, tuple(args), dict(named))


def text(content: Any) -> Node:
    return Node(type=TEXT, attributes={"content": content})


def comment(content: str) -> Node:
    return Node(type=COMMENT, attributes={"content": content})


def fence(content: str, language: str | None = None, id: str | None = None) -> Node:
    attributes: dict[str, Any] = {"content": content}
    if language:
        attributes["language"] = language
    if id:
        attributes["id"] = id
    return Node(type=FENCE, attributes=attributes)


def tag(name: str, attributes: dict[str, Any] | None = None, *children: Node) -> Node:
    return Node(type=TAG, tag=name, attributes=dict(attributes or {}), children=list(children))


def node(type: str, *children: Node, **attributes: Any) -> Node:
    """Generic container node such as `paragraph` or `inline`."""
    return Node(type=type, attributes=attributes, children=list(children))


def document(*children: Node, frontmatter: Frontmatter | dict | None = None) -> Document:
    if isinstance(frontmatter, dict):
        frontmatter = Frontmatter.model_validate(frontmatter)
    return Document(
        root=Node(type=DOCUMENT, children=list(children)),
        frontmatter=frontmatter or Frontmatter(),
    )
