"""
LangChain Chat Model Adapter
============================

Runs generation through any langchain-core chat model (OpenAI, Anthropic,
Ollama, ...) so providers are swapped by configuration, not code.
"""

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.models import LLMResponse


class LangChainLLM(LLMInterface):
    """``LLMInterface`` backed by a LangChain ``BaseChatModel``."""

    def __init__(self, chat_model: BaseChatModel) -> None:
        self.chat_model = chat_model

    @property
    def model_name(self) -> str:
        return (
            getattr(self.chat_model, "model_name", None)
            or getattr(self.chat_model, "model", None)
            or type(self.chat_model).__name__
        )

    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        message = self.chat_model.invoke(messages)

        usage = getattr(message, "usage_metadata", None) or {}
        content = message.content if isinstance(message.content, str) else str(message.content)
        return LLMResponse(
            content=content,
            model=self.model_name,
            tokens_used=int(usage.get("total_tokens", 0)),
        )
