"""
Tests for the document model: decoding compiler output and frontmatter inputs.
"""

import pytest

from aimdoc.core.builders import document, tag, text, var
from aimdoc.core.expressions import FunctionCall, VariableRef
from aimdoc.core.nodes import Document, Frontmatter, Node
from aimdoc.exceptions import DocumentFormatError


class TestNodeFromMarkdoc:
    """Tests for decoding serialized Markdoc nodes."""

    def test_decode_tag_with_expressions(self):
        """Variable and function attributes are decoded into expressions."""
        data = {
            "$$mdtype": "Node",
            "type": "tag",
            "tag": "if",
            "attributes": {
                "primary": {
                    "$$mdtype": "Function",
                    "name": "equals",
                    "parameters": {
                        "0": {"$$mdtype": "Variable", "path": ["x"]},
                        "1": 1,
                    },
                }
            },
            "children": [{"type": "text", "attributes": {"content": "A"}}],
            "lines": [3, 5],
        }
        node = Node.from_markdoc(data)

        assert node.is_tag
        assert node.name == "if"
        assert node.attributes["primary"] == FunctionCall("equals", (VariableRef(("x",)), 1))
        assert node.children[0].attributes["content"] == "A"
        assert node.lines == [3, 5]

    def test_named_parameters_are_kept(self):
        """Non-numeric function parameters become named arguments."""
        data = {
            "type": "tag",
            "tag": "set",
            "attributes": {"value": {"$$mdtype": "Function", "name": "fmt", "parameters": {"0": "a", "sep": "-"}}},
        }
        call = Node.from_markdoc(data).attributes["value"]

        assert call.args == ("a",)
        assert call.named == {"sep": "-"}

    def test_nested_values_are_decoded(self):
        """Expressions inside lists and objects are preserved."""
        data = {
            "type": "tag",
            "tag": "flow",
            "attributes": {"input": {"topic": {"$$mdtype": "Variable", "path": ["t", "result"]}, "n": [1, 2]}},
        }
        value = Node.from_markdoc(data).attributes["input"]

        assert value == {"topic": VariableRef(("t", "result")), "n": [1, 2]}

    def test_non_tag_name_is_type(self):
        """Containers are named by their type."""
        assert Node(type="paragraph").name == "paragraph"

    def test_missing_type_rejected(self):
        """Objects without a type are not nodes."""
        with pytest.raises(DocumentFormatError):
            Node.from_markdoc({"children": []})

    def test_function_without_name_rejected(self):
        """A malformed function expression is a format error."""
        data = {"type": "tag", "tag": "if", "attributes": {"primary": {"$$mdtype": "Function"}}}
        with pytest.raises(DocumentFormatError, match="malformed expression"):
            Node.from_markdoc(data)


class TestFrontmatter:
    """Tests for frontmatter parsing and input defaults."""

    def test_from_yaml(self):
        """Declared inputs are parsed with their schema defaults."""
        frontmatter = Frontmatter.from_yaml(
            "title: Jokes\ninput:\n  - name: topic\n    type: string\n    schema:\n      default: cats\n"
        )

        assert frontmatter.input[0].name == "topic"
        assert frontmatter.input[0].default == "cats"
        assert frontmatter.model_extra == {"title": "Jokes"}

    def test_empty_yaml(self):
        """No frontmatter means no inputs."""
        assert Frontmatter.from_yaml(None).input == []
        assert Frontmatter.from_yaml("   ").input == []

    def test_invalid_yaml(self):
        """Unparseable YAML is a format error."""
        with pytest.raises(DocumentFormatError):
            Frontmatter.from_yaml("input: [unclosed")

    def test_yaml_must_be_mapping(self):
        """A YAML list is not a frontmatter."""
        with pytest.raises(DocumentFormatError, match="mapping"):
            Frontmatter.from_yaml("- a\n- b\n")

    def test_resolve_inputs_uses_defaults(self):
        """Missing and None inputs fall back to defaults; extra values are kept."""
        frontmatter = Frontmatter.model_validate(
            {"input": [{"name": "topic", "schema": {"default": "cats"}}, {"name": "tone"}]}
        )
        resolved = frontmatter.resolve_inputs({"tone": None, "extra": 1})

        assert resolved == {"topic": "cats", "tone": None, "extra": 1}

    def test_supplied_input_wins(self):
        """A supplied value overrides the default."""
        frontmatter = Frontmatter.model_validate({"input": [{"name": "topic", "schema": {"default": "cats"}}]})
        assert frontmatter.resolve_inputs({"topic": "dogs"}) == {"topic": "dogs"}


class TestDocument:
    """Tests for whole documents."""

    def test_frontmatter_from_root_attribute(self):
        """Markdoc stores raw frontmatter YAML on the root node."""
        data = {
            "type": "document",
            "attributes": {"frontmatter": "input:\n  - name: topic\n"},
            "children": [],
        }
        doc = Document.from_markdoc(data)

        assert [declaration.name for declaration in doc.frontmatter.input] == ["topic"]

    def test_explicit_frontmatter_wins(self):
        """A frontmatter argument takes precedence over the root attribute."""
        data = {"type": "document", "attributes": {"frontmatter": "input:\n  - name: a\n"}}
        doc = Document.from_markdoc(data, {"input": [{"name": "b"}]})

        assert doc.frontmatter.input[0].name == "b"

    def test_builders(self):
        """Builders produce the same shape as decoded documents."""
        doc = document(tag("set", {"id": "v", "number": 2}), text(var("v.number")))

        assert doc.root.type == "document"
        assert doc.root.children[0].tag == "set"
        assert doc.root.children[1].attributes["content"] == VariableRef(("v", "number"))
