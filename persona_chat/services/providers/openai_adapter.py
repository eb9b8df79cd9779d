from typing import Optional

from persona_chat.schemas.chat import Provider
from persona_chat.services.providers.base import ProviderAdapter
from persona_chat.settings import OpenAISettings
from persona_chat.utils.llm import build_openai_llm


class OpenAIAdapter(ProviderAdapter):
    name = Provider.openai.value
    label = "OpenAI"

    @classmethod
    def from_settings(
        cls,
        settings: OpenAISettings,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
    ) -> "OpenAIAdapter":
        return cls(build_openai_llm(settings, api_key=api_key, timeout=timeout))
