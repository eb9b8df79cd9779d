from persona_chat.services.providers.base import ProviderAdapter, content_text
from persona_chat.services.providers.openai_adapter import OpenAIAdapter
from persona_chat.services.providers.gemini_adapter import GeminiAdapter
from persona_chat.services.providers.registry import ProviderRegistry, PROVIDER_LABELS

__all__ = [
    "ProviderAdapter",
    "OpenAIAdapter",
    "GeminiAdapter",
    "ProviderRegistry",
    "PROVIDER_LABELS",
    "content_text",
]
