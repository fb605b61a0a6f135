from enum import Enum

from attrs import frozen
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.rate_limiters import BaseRateLimiter
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI


class Provider(Enum):
    anthropic = "anthropic"
    google = "google"
    openai = "openai"


@frozen
class ModelParam:
    provider: Provider
    model: str
    temperature: float | None = None


chat_models_classes = {
    Provider.openai: ChatOpenAI,
    Provider.google: ChatGoogleGenerativeAI,
    Provider.anthropic: ChatAnthropic,
}

api_key_names = {
    Provider.openai: "OPENAI_API_KEY",
    Provider.google: "GOOGLE_API_KEY",
    Provider.anthropic: "ANTHROPIC_API_KEY",
}


def parse_model_string(model: str) -> ModelParam:
    """Parse a `provider/model` reference as written in `ai` tags.

    Params:
        model: Reference such as `openai/gpt-4o-mini` or `anthropic/claude-3-5-haiku-latest`.

    Returns:
        Model parameters without a temperature.

    Raises:
        ValueError: If the reference has no provider prefix or names an unknown provider.
    """
    provider_name, separator, model_name = model.partition("/")
    if not separator or not model_name:
        raise ValueError(f"Model reference '{model}' must have the form 'provider/model'.")
    try:
        provider = Provider(provider_name.strip().lower())
    except ValueError:
        known = ", ".join(provider.value for provider in Provider)
        raise ValueError(f"Unknown model provider '{provider_name}'. Known providers: {known}") from None
    return ModelParam(provider=provider, model=model_name.strip())


class LLMProvider:
    """Lightweight registry/factory for chat model instances.

    Responsibilities:
      - Maintain a mutable mapping of model name -> `ModelParam` config.
      - Accept unregistered `provider/model` references as written in documents.
      - Instantiate provider specific LangChain classes on demand.

    Notes:
      - Does not cache instantiated models; API keys come from the execution's
        secrets and may differ between executions.
    """

    def __init__(self, default_model_params: dict[str, ModelParam] | None = None):
        self._model_params = (default_model_params or {}).copy()

    def resolve(self, name: str) -> ModelParam:
        """Model parameters for a registered name or a `provider/model` reference.

        Raises:
            KeyError: If the name is neither registered nor a valid reference.
        """
        if name in self._model_params:
            return self._model_params[name]
        try:
            return parse_model_string(name)
        except ValueError as exc:
            raise KeyError(
                f"Model {name} is not defined in the provider ({exc}). Available models: {self.list_models()}"
            ) from None

    def get_llm(
        self,
        name: str,
        temperature: float | None = None,
        rate_limiter: BaseRateLimiter | None = None,
        api_key: str | None = None,
    ) -> BaseChatModel:
        """Get a chat (LLM) model by its registered name or `provider/model` reference.

        Params:
            name: Logical model key or `provider/model` reference.
            temperature: Overrides the registered temperature when given.
            rate_limiter: Optional rate limiter to throttle API calls.
            api_key: Provider API key; the provider's environment variable is used when None.

        Returns:
            Instantiated chat model (`BaseChatModel`).

        Raises:
            KeyError: If the model cannot be resolved.
        """
        model_params = self.resolve(name)
        model_class = chat_models_classes[model_params.provider]
        kwargs = {
            "model": model_params.model,
            "temperature": temperature if temperature is not None else model_params.temperature,
            "rate_limiter": rate_limiter,
        }
        if api_key is not None:
            kwargs["api_key"] = api_key
        return model_class(**kwargs)

    def api_key_name(self, name: str) -> str:
        """Name of the secret holding the API key for a model."""
        return api_key_names[self.resolve(name).provider]

    def list_models(self) -> list[str]:
        """List all registered model keys.

        Returns:
            List of model names.
        """
        return list(self._model_params.keys())

    def update_model(self, name: str, model_params: ModelParam) -> None:
        """Update configuration for an existing model.

        Raises:
            KeyError: If the model name is not registered.
        """
        if name not in self._model_params:
            raise KeyError(
                f"Model {name} is not defined in the provider. Available models: {self.list_models()}"
            )
        self.set_model(name, model_params)

    def set_model(self, name: str, model_params: ModelParam) -> None:
        """Insert a new model configuration or overwrite an existing one."""
        self._model_params[name] = model_params
