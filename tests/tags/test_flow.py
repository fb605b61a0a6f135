"""
Tests for the `flow` tag running sub-documents.
"""

import json
from unittest.mock import Mock

import pytest

from aimdoc.core.builders import document, tag, text, var
from aimdoc.exceptions import ContentNotFoundError, DocumentFormatError, MissingRequiredAttributeError
from tests.conftest import run_document, serialized

SUMMARY_FRONTMATTER = "input:\n  - name: topic\n    type: string\n    description: What to write about\n    schema:\n      default: dogs\n"


def summary_flow(frontmatter=SUMMARY_FRONTMATTER) -> str:
    root = {
        "$$mdtype": "Node",
        "type": "document",
        "children": [
            {"type": "text", "attributes": {"content": "Sub "}},
            {"type": "text", "attributes": {"content": {"$$mdtype": "Variable", "path": ["frontmatter", "input", "topic"]}}},
            {"type": "tag", "tag": "set", "attributes": {"id": "inner", "string": "hidden"}},
        ],
    }
    return serialized(root, frontmatter)


def in_memory(**options):
    return {"environment": "browser", "files": {"summary.json": summary_flow()}, **options}


class TestFlow:
    """Loading and running a sub-flow."""

    def test_explicit_input(self):
        doc = document(tag("flow", {"path": "./summary.json", "input": {"topic": var("t")}, "id": "sum"}), text(var("sum.path")))
        result = run_document(doc, variables={"t": "cats"}, **in_memory())

        assert result.text == "Sub cats./summary.json"
        assert result.variables["sum"]["input"] == {"topic": "cats"}

    def test_defaults_without_ai_adapter(self):
        doc = document(tag("flow", {"path": "summary.json"}))
        assert run_document(doc, **in_memory()).text == "Sub dogs"

    def test_generated_input(self, ai_adapter):
        ai_adapter.handlers["generate_object"].return_value = {"topic": "birds"}
        doc = document(text("We like birds. "), tag("flow", {"path": "summary.json"}))
        result = run_document(doc, adapters=[ai_adapter], **in_memory())

        assert result.text == "We like birds. Sub birds"
        request = ai_adapter.handlers["generate_object"].call_args.args[0]
        assert request["schema"]["properties"]["topic"] == {
            "type": "string",
            "description": "What to write about",
            "default": "dogs",
        }
        assert "We like birds." in request["prompt"]

    def test_generated_input_as_json_text(self, ai_adapter):
        ai_adapter.handlers["generate_object"].return_value = json.dumps({"topic": "fish"})
        doc = document(tag("flow", {"path": "summary.json"}))
        assert run_document(doc, adapters=[ai_adapter], **in_memory()).text == "Sub fish"

    def test_sub_flow_variables_do_not_leak(self):
        doc = document(tag("flow", {"path": "summary.json", "input": {}}), text(var("inner.string")))
        assert run_document(doc, **in_memory()).text == "Sub dogs"

    def test_sub_flow_output_feeds_later_prompt(self, ai_adapter):
        doc = document(tag("flow", {"path": "summary.json", "input": {"topic": "owls"}}), tag("ai"))
        run_document(doc, adapters=[ai_adapter], **in_memory())

        assert ai_adapter.handlers["generate_text"].call_args.args[0]["prompt"] == "Sub owls"

    def test_log_event(self):
        on_log = Mock()
        run_document(document(tag("flow", {"path": "summary.json", "input": {}})), on_log=on_log, **in_memory())
        on_log.assert_called_once_with("Calling flow summary.json")

    def test_sub_flow_shares_configuration(self, ai_adapter):
        """Sub-flows use the same adapters as the caller."""
        root = {"type": "document", "children": [{"type": "text", "attributes": {"content": "inner "}}, {"type": "tag", "tag": "ai"}]}
        files = {"ask.json": serialized(root)}
        result = run_document(
            document(tag("flow", {"path": "ask.json", "input": {}})),
            adapters=[ai_adapter],
            environment="browser",
            files=files,
        )
        assert result.text == "inner generated"

    def test_file_system(self, tmp_path):
        (tmp_path / "summary.json").write_text(summary_flow(), encoding="utf-8")
        doc = document(tag("flow", {"path": "summary.json", "input": {"topic": "owls"}}))
        assert run_document(doc, root=tmp_path).text == "Sub owls"


class TestFlowErrors:
    """Failures while loading and compiling."""

    def test_path_required(self):
        with pytest.raises(MissingRequiredAttributeError, match="path"):
            run_document(document(tag("flow")), **in_memory())

    def test_missing_content(self):
        with pytest.raises(ContentNotFoundError, match="nope.json"):
            run_document(document(tag("flow", {"path": "nope.json"})), **in_memory())

    def test_invalid_content(self):
        with pytest.raises(DocumentFormatError):
            run_document(
                document(tag("flow", {"path": "bad.json"})),
                environment="browser",
                files={"bad.json": "# not compiled"},
            )
