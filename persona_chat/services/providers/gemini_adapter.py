from typing import Optional

from persona_chat.schemas.chat import Provider
from persona_chat.services.providers.base import ProviderAdapter
from persona_chat.settings import GeminiSettings
from persona_chat.utils.llm import build_gemini_llm


class GeminiAdapter(ProviderAdapter):
    name = Provider.gemini.value
    label = "Gemini"

    @classmethod
    def from_settings(
        cls,
        settings: GeminiSettings,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
    ) -> "GeminiAdapter":
        return cls(build_gemini_llm(settings, api_key=api_key, timeout=timeout))
