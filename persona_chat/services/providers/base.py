from typing import Any, AsyncIterator, List
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, SystemMessage, HumanMessage

from persona_chat.errors import ProviderError


def content_text(content: Any) -> str:
    """Text of a message or chunk content.

    Some providers return a list of parts instead of a string; only the
    text parts are kept.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return ""


class ProviderAdapter:
    """Uniform access to one LLM provider through a LangChain chat model."""

    name: str = ""
    label: str = "Provider"

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    def _prompt(self, system_prompt: str, message: str) -> List[BaseMessage]:
        return [
            SystemMessage(content=system_prompt),
            HumanMessage(content=message),
        ]

    async def complete_once(self, system_prompt: str, message: str) -> str:
        """Wait for the whole completion and return its text."""
        response = await self.llm.ainvoke(self._prompt(system_prompt, message))
        text = content_text(response.content)
        if not text.strip():
            raise ProviderError(f"{self.label} returned an empty completion")
        return text

    async def complete_streaming(
        self, system_prompt: str, message: str
    ) -> AsyncIterator[str]:
        """Yield the completion as text fragments in provider order."""
        async for chunk in self.llm.astream(self._prompt(system_prompt, message)):
            text = content_text(chunk.content)
            # Empty content usually means a tool call or metadata chunk
            if text:
                yield text

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"
