"""
Document model for the AIM runtime.

A Document is the immutable output of the external Markdoc-compatible compiler:
an ordered tree of Nodes plus the frontmatter that declares the document's
input parameters. Documents are created once and only read during execution.
"""

from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aimdoc.core.expressions import decode_markdoc_value
from aimdoc.exceptions import DocumentFormatError

TAG = "tag"
TEXT = "text"
COMMENT = "comment"
FENCE = "fence"
DOCUMENT = "document"
LINE_BREAKS = frozenset({"softbreak", "hardbreak"})
BLOCKS = frozenset({"paragraph", "heading", "item", "blockquote"})


class Node(BaseModel):
    """
    A tagged tree element of a compiled document.

    Tag nodes carry the tag name and attributes whose values may be literals or
    deferred expressions; text and comment nodes carry their content in the
    `content` attribute; every other node type (paragraph, inline, list...) is
    a plain container of children.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: str
    tag: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    children: list["Node"] = Field(default_factory=list)
    lines: list[int] = Field(default_factory=list)

    @property
    def is_tag(self) -> bool:
        return self.type == TAG

    @property
    def name(self) -> str:
        """Tag name for tag nodes, node type otherwise."""
        return self.tag if self.is_tag and self.tag else self.type

    @classmethod
    def from_markdoc(cls, data: dict[str, Any]) -> "Node":
        """
        Decode a serialized Markdoc AST node.

        Params:
            data: JSON object as produced by serializing a Markdoc `Node`

        Returns:
            Node tree with attribute expressions decoded

        Raises:
            DocumentFormatError: If the data is not a node object
        """
        if not isinstance(data, dict) or "type" not in data:
            raise DocumentFormatError(f"expected a node object, got {type(data).__name__}")
        try:
            attributes = {
                key: decode_markdoc_value(value)
                for key, value in (data.get("attributes") or {}).items()
            }
            children = [cls.from_markdoc(child) for child in data.get("children") or []]
        except KeyError as exc:
            raise DocumentFormatError(f"malformed expression, missing {exc}") from exc
        return cls(
            type=data["type"],
            tag=data.get("tag"),
            attributes=attributes,
            children=children,
            lines=list(data.get("lines") or []),
        )


class InputSchema(BaseModel):
    """Schema fragment attached to a declared input; only `default` is interpreted."""

    model_config = ConfigDict(extra="allow")

    default: Any = None


class InputDeclaration(BaseModel):
    """One entry of the frontmatter `input` list."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: str = "string"
    description: str = ""
    input_schema: InputSchema = Field(default_factory=InputSchema, alias="schema")

    @property
    def default(self) -> Any:
        return self.input_schema.default


class Frontmatter(BaseModel):
    """Document frontmatter. Unknown keys are kept as extra fields."""

    model_config = ConfigDict(extra="allow")

    input: list[InputDeclaration] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, text: str | None) -> "Frontmatter":
        """
        Parse the raw YAML frontmatter block of a document.

        Params:
            text: YAML source, may be empty or None

        Returns:
            Parsed Frontmatter (empty when there is no frontmatter)

        Raises:
            DocumentFormatError: If the YAML is invalid or not a mapping
        """
        if not text or not text.strip():
            return cls()
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise DocumentFormatError(f"invalid frontmatter: {exc}") from exc
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise DocumentFormatError("frontmatter must be a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise DocumentFormatError(f"invalid frontmatter: {exc}") from exc

    def resolve_inputs(self, supplied: dict[str, Any]) -> dict[str, Any]:
        """
        Combine supplied input values with declared defaults.

        Every supplied value is kept; declared inputs that were not supplied
        (or supplied as None) fall back to their schema default.

        Params:
            supplied: Input values given by the caller

        Returns:
            Mapping of input name to value
        """
        resolved = dict(supplied)
        for declaration in self.input:
            value = supplied.get(declaration.name)
            resolved[declaration.name] = value if value is not None else declaration.default
        return resolved


class Document(BaseModel):
    """A compiled document: root node plus frontmatter."""

    model_config = ConfigDict(frozen=True)

    root: Node
    frontmatter: Frontmatter = Field(default_factory=Frontmatter)

    @classmethod
    def from_markdoc(
        cls, data: dict[str, Any], frontmatter: str | dict | None = None
    ) -> "Document":
        """
        Build a Document from a serialized Markdoc AST.

        The frontmatter is read from the explicit argument when given, otherwise
        from the root node's `frontmatter` attribute (raw YAML, as Markdoc
        stores it).

        Params:
            data: Serialized root node
            frontmatter: Optional YAML string or already parsed mapping

        Returns:
            Decoded Document
        """
        root = Node.from_markdoc(data)
        if frontmatter is None:
            frontmatter = root.attributes.get("frontmatter")
        if isinstance(frontmatter, dict):
            parsed = Frontmatter.model_validate(frontmatter)
        else:
            parsed = Frontmatter.from_yaml(frontmatter)
        return cls(root=root, frontmatter=parsed)
