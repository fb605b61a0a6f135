"""
Tests for the `ai` tag against a fake ai adapter.
"""

import pytest

from aimdoc.core.builders import document, node, tag, text, var
from aimdoc.exceptions import AdapterNotFoundError, ExternalCallError
from tests.conftest import run_document


class TestGenerateText:
    """Plain text generation."""

    def test_prompt_is_accumulated_text(self, ai_adapter):
        doc = document(
            node("paragraph", text("Tell me a joke about "), text(var("topic"))),
            tag("ai", {"id": "joke"}),
            text(" | "),
            text(var("joke.result")),
        )
        result = run_document(doc, adapters=[ai_adapter], variables={"topic": "cats"})

        request = ai_adapter.handlers["generate_text"].call_args.args[0]
        assert request["prompt"] == "Tell me a joke about cats\n"
        assert request["model"] == "openai/gpt-4o-mini"
        assert request["temperature"] == 0.5
        assert result.text == "Tell me a joke about cats\ngenerated | generated"

    def test_result_joins_the_prompt_of_later_calls(self, ai_adapter):
        doc = document(text("first"), tag("ai", {"id": "a"}), tag("ai", {"id": "b"}))
        run_document(doc, adapters=[ai_adapter])

        prompts = [c.args[0]["prompt"] for c in ai_adapter.handlers["generate_text"].call_args_list]
        assert prompts == ["first", "firstgenerated"]

    def test_parallel_results_feed_later_prompt(self, ai_adapter):
        doc = document(tag("parallel", {}, text("a"), text("b")), tag("ai"))
        run_document(doc, adapters=[ai_adapter])

        assert ai_adapter.handlers["generate_text"].call_args.args[0]["prompt"] == "ab"

    def test_branch_and_loop_output_feed_later_prompt(self, ai_adapter):
        """Text rendered inside scoped blocks stays part of the conversation."""
        doc = document(
            tag("if", {"primary": True}, text("Write about cats.")),
            tag("loop", {"count": 2}, text(" Keep it short.")),
            tag("ai"),
        )
        result = run_document(doc, adapters=[ai_adapter])

        prompt = ai_adapter.handlers["generate_text"].call_args.args[0]["prompt"]
        assert prompt == "Write about cats. Keep it short. Keep it short."
        assert result.text == prompt + "generated"

    def test_earlier_iterations_feed_prompt_inside_loop(self, ai_adapter):
        doc = document(tag("loop", {"count": 2}, text(var("loop.count")), tag("ai")))
        run_document(doc, adapters=[ai_adapter])

        prompts = [c.args[0]["prompt"] for c in ai_adapter.handlers["generate_text"].call_args_list]
        assert prompts == ["1", "1generated2"]

    def test_tools_are_selected_by_name(self, ai_adapter):
        search = object()
        doc = document(tag("ai", {"tools": ["search", "missing"]}))
        run_document(doc, adapters=[ai_adapter], tools={"search": search})

        assert ai_adapter.handlers["generate_text"].call_args.args[0]["tools"] == {"search": search}

    def test_missing_adapter(self):
        with pytest.raises(AdapterNotFoundError):
            run_document(document(tag("ai")))


class TestStructuredOutputs:
    """Second call for a structured object."""

    schema = {"type": "object", "properties": {"answer": {"type": "integer"}}, "required": ["answer"]}

    def test_structured_outputs(self, ai_adapter):
        doc = document(tag("ai", {"id": "q", "structuredOutputs": self.schema}), text(var("q.structuredOutputs.answer")))
        result = run_document(doc, adapters=[ai_adapter])

        request = ai_adapter.handlers["generate_object"].call_args.args[0]
        assert request["schema"] == self.schema
        assert result.text == "generated42"

    def test_retried_until_valid(self, ai_adapter):
        ai_adapter.handlers["generate_object"].side_effect = [RuntimeError("invalid json"), {"answer": 1}]
        doc = document(tag("ai", {"id": "q", "structuredOutputs": self.schema}), text(var("q.structuredOutputs.answer")))
        result = run_document(doc, adapters=[ai_adapter], retry_backoff=0)

        assert result.text == "generated1"
        assert ai_adapter.handlers["generate_object"].await_count == 2

    def test_retries_exhausted(self, ai_adapter):
        ai_adapter.handlers["generate_object"].side_effect = RuntimeError("invalid json")
        doc = document(tag("ai", {"structuredOutputs": self.schema}))
        with pytest.raises(ExternalCallError, match="after 2 attempt"):
            run_document(doc, adapters=[ai_adapter], retry_backoff=0, max_retries=2)
