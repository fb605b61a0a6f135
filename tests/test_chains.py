"""
Tests for the LangChain-backed ai adapter, without calling any provider.
"""

import asyncio
from unittest.mock import Mock

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from aimdoc.chains import DEFAULT_MODEL, langchain_adapter, make_rate_limiter, prepare_chain
from aimdoc.config import RuntimeOptions
from aimdoc.core.builders import document, node, tag, text, var
from aimdoc.execution.context import AdapterContext
from aimdoc.execution.signals import AbortController
from aimdoc.execution.state import ExecutionState
from tests.conftest import run_document


def adapter_context(**env):
    state = ExecutionState(RuntimeOptions(env=env), AbortController().signal)
    return AdapterContext(state_manager=state, signal=state.signal)


def fake_provider(llm):
    provider = Mock()
    provider.get_llm.return_value = llm
    provider.api_key_name.return_value = "OPENAI_API_KEY"
    return provider


class TestPrepareChain:
    """Chain assembly."""

    def test_text_chain(self):
        chain = prepare_chain(FakeListChatModel(responses=["hello"]), "System {not a variable}")
        assert chain.invoke({"prompt": "Say {hi}"}) == "hello"

    def test_rate_limiter(self):
        assert make_rate_limiter(None) is None
        assert make_rate_limiter(2) is not None


class TestLangchainAdapter:
    """`generate_text` and `generate_object`."""

    def test_generate_text_uses_secret(self):
        provider = fake_provider(FakeListChatModel(responses=["a joke"]))
        adapter = langchain_adapter(provider)
        result = asyncio.run(
            adapter.handlers["generate_text"]({"prompt": "Tell a joke", "temperature": 0.2}, adapter_context(OPENAI_API_KEY="sk-test"))
        )

        assert result == "a joke"
        provider.api_key_name.assert_called_once_with(DEFAULT_MODEL)
        assert provider.get_llm.call_args.kwargs["api_key"] == "sk-test"
        assert provider.get_llm.call_args.kwargs["temperature"] == 0.2

    def test_generate_object(self):
        llm = Mock()
        llm.with_structured_output.return_value = RunnableLambda(lambda prompt_value: {"answer": 42})
        adapter = langchain_adapter(fake_provider(llm))
        schema = {"type": "object", "properties": {"answer": {"type": "integer"}}, "required": ["answer"]}

        result = asyncio.run(adapter.handlers["generate_object"]({"prompt": "6*7", "schema": schema}, adapter_context()))

        assert result == {"answer": 42}
        output_model = llm.with_structured_output.call_args.args[0]
        assert list(output_model.model_fields) == ["answer"]

    def test_tools_are_bound(self):
        llm = Mock()
        llm.bind_tools.return_value = FakeListChatModel(responses=["done"])
        adapter = langchain_adapter(fake_provider(llm))
        search = object()

        result = asyncio.run(adapter.handlers["generate_text"]({"prompt": "x", "tools": {"search": search}}, adapter_context()))

        assert result == "done"
        llm.bind_tools.assert_called_once_with([search])

    def test_in_a_document(self):
        adapter = langchain_adapter(fake_provider(FakeListChatModel(responses=["purr"])))
        doc = document(node("paragraph", text("Sound of a "), text(var("animal"))), tag("ai", {"id": "sound"}))
        result = run_document(doc, adapters=[adapter], variables={"animal": "cat"})

        assert result.text == "Sound of a cat\npurr"
        assert result.variables["sound"]["result"] == "purr"
