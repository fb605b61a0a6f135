"""LangChain-backed `ai` adapter.

`langchain_adapter()` returns the `Adapter` the `ai` and `flow` tags call:
    - `generate_text`: the accumulated document text is sent as the human
        message, the model's reply is returned as a string;
    - `generate_object`: the JSON Schema in `args["schema"]` is turned into a
        Pydantic model and bound with `.with_structured_output()`; the parsed
        object is returned as a dict.

Chains are assembled per call because model, temperature and API key (taken
from the execution's secrets) can differ between calls.
"""

import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.rate_limiters import BaseRateLimiter, InMemoryRateLimiter
from langchain_core.runnables import Runnable
from pydantic import BaseModel

from aimdoc.config import Adapter
from aimdoc.dynamic import describe_model, schema_to_model
from aimdoc.execution.context import AdapterContext
from aimdoc.models import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/gpt-4o-mini"

TEXT_SYSTEM_PROMPT = "You are executing a prompt document. Follow the instructions in the user message."
OBJECT_SYSTEM_PROMPT = "Extract a structured object from the user message."


def prepare_chain(
    llm: BaseChatModel,
    prompt_system: str,
    structured_output: type[BaseModel] | None = None,
) -> Runnable:
    """
    Assemble a runnable chain: system message, the document text as human
    message, then either a string parser or structured output binding.

    The human message is a template variable (`{prompt}`) so braces in document
    text are never interpreted by the template engine.

    Params:
        llm: Chat model to call
        prompt_system: System prompt, braces are escaped
        structured_output: Optional Pydantic model class for structured responses

    Returns:
        Runnable taking `{"prompt": str}`
    """
    prompt_template = ChatPromptTemplate.from_messages(
        [("system", prompt_system.replace("{", "{{").replace("}", "}}")), ("human", "{prompt}")]
    )
    if structured_output is not None:
        return prompt_template | llm.with_structured_output(structured_output)
    return prompt_template | llm | StrOutputParser()


def make_rate_limiter(requests_per_second: float | None) -> BaseRateLimiter | None:
    if not requests_per_second:
        return None
    return InMemoryRateLimiter(
        requests_per_second=requests_per_second,
        check_every_n_seconds=max(0.1, 1.0 / requests_per_second),
        max_bucket_size=1,
    )


def langchain_adapter(
    provider: LLMProvider | None = None,
    requests_per_second: float | None = None,
) -> Adapter:
    """
    Build the `ai` adapter on top of LangChain chat models.

    Params:
        provider: Model registry; a bare `LLMProvider` (accepting `provider/model`
            references) when omitted
        requests_per_second: Optional client-side rate limit shared by all calls

    Returns:
        Adapter of type `ai` with `generate_text` and `generate_object`
    """
    provider = provider or LLMProvider()
    rate_limiter = make_rate_limiter(requests_per_second)

    def get_llm(args: dict[str, Any], context: AdapterContext) -> BaseChatModel:
        model = args.get("model") or DEFAULT_MODEL
        api_key = context.state_manager.get_secret(provider.api_key_name(model))
        llm = provider.get_llm(
            model, temperature=args.get("temperature"), rate_limiter=rate_limiter, api_key=api_key
        )
        tools = args.get("tools") or {}
        if tools:
            llm = llm.bind_tools(list(tools.values()))
        return llm

    async def generate_text(args: dict[str, Any], context: AdapterContext) -> str:
        chain = prepare_chain(get_llm(args, context), TEXT_SYSTEM_PROMPT)
        logger.debug("generate_text with %s", args.get("model") or DEFAULT_MODEL)
        return await chain.ainvoke({"prompt": args.get("prompt", "")})

    async def generate_object(args: dict[str, Any], context: AdapterContext) -> dict[str, Any]:
        output_model = schema_to_model("StructuredOutput", args["schema"])
        chain = prepare_chain(
            get_llm({**args, "tools": None}, context),
            OBJECT_SYSTEM_PROMPT + "\n\n" + describe_model(output_model),
            structured_output=output_model,
        )
        logger.debug("generate_object with %s", args.get("model") or DEFAULT_MODEL)
        result = await chain.ainvoke({"prompt": args.get("prompt", "")})
        if isinstance(result, BaseModel):
            return result.model_dump()
        return dict(result)

    return Adapter(type="ai", handlers={"generate_text": generate_text, "generate_object": generate_object})
