"""
Tests for model references and the LLM provider registry.
"""

from unittest.mock import Mock, patch

import pytest

from aimdoc.models import LLMProvider, ModelParam, Provider, parse_model_string


class TestParseModelString:
    """`provider/model` references."""

    def test_valid_reference(self):
        assert parse_model_string("openai/gpt-4o-mini") == ModelParam(provider=Provider.openai, model="gpt-4o-mini")
        assert parse_model_string("Anthropic/claude-3-5-haiku-latest").provider is Provider.anthropic

    @pytest.mark.parametrize("reference", ["gpt-4o", "openai/", "mistral/large"])
    def test_invalid_reference(self, reference):
        with pytest.raises(ValueError):
            parse_model_string(reference)


class TestLLMProvider:
    """Registry behaviour."""

    def test_registered_name_wins(self):
        provider = LLMProvider({"fast": ModelParam(provider=Provider.google, model="gemini-2.0-flash", temperature=0.1)})
        assert provider.resolve("fast").provider is Provider.google
        assert provider.api_key_name("fast") == "GOOGLE_API_KEY"

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            LLMProvider().resolve("fast")

    def test_get_llm_passes_parameters(self):
        chat_class = Mock()
        provider = LLMProvider({"fast": ModelParam(provider=Provider.openai, model="gpt-4o-mini", temperature=0.1)})
        with patch.dict("aimdoc.models.chat_models_classes", {Provider.openai: chat_class}):
            provider.get_llm("fast", api_key="sk-test")
            provider.get_llm("fast", temperature=0.9)

        first, second = chat_class.call_args_list
        assert first.kwargs == {"model": "gpt-4o-mini", "temperature": 0.1, "rate_limiter": None, "api_key": "sk-test"}
        assert second.kwargs["temperature"] == 0.9
        assert "api_key" not in second.kwargs

    def test_update_and_set(self):
        provider = LLMProvider()
        params = ModelParam(provider=Provider.anthropic, model="claude-3-5-haiku-latest")
        with pytest.raises(KeyError):
            provider.update_model("cheap", params)

        provider.set_model("cheap", params)
        provider.update_model("cheap", ModelParam(provider=Provider.openai, model="gpt-4o-mini"))

        assert provider.list_models() == ["cheap"]
        assert provider.resolve("cheap").provider is Provider.openai
