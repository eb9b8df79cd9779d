from typing import Callable, Dict, List, Optional
from loguru import logger

from persona_chat.errors import MissingCredential, classify_provider_error
from persona_chat.schemas.chat import Provider
from persona_chat.services.providers.base import ProviderAdapter
from persona_chat.services.providers.gemini_adapter import GeminiAdapter
from persona_chat.services.providers.openai_adapter import OpenAIAdapter
from persona_chat.settings import ProviderSettings

PROVIDER_LABELS = {Provider.openai: "OpenAI", Provider.gemini: "Gemini"}

AdapterFactory = Callable[[str], ProviderAdapter]


class ProviderRegistry:
    """Provider adapters available to the chat handler.

    Server adapters are built once from process configuration and shared
    by all requests. A credential supplied by the client is untrusted
    input: it only ever produces a fresh adapter for that one request and
    is never stored or logged.
    """

    def __init__(
        self,
        adapters: Optional[Dict[Provider, ProviderAdapter]] = None,
        factories: Optional[Dict[Provider, AdapterFactory]] = None,
    ):
        self.adapters = dict(adapters or {})
        self.factories = dict(factories or {})

    @classmethod
    def from_settings(
        cls, provider_settings=ProviderSettings, timeout: float = 60.0
    ) -> "ProviderRegistry":
        openai_settings = provider_settings.openai
        gemini_settings = provider_settings.gemini

        factories = {
            Provider.openai: lambda key: OpenAIAdapter.from_settings(
                openai_settings, api_key=key, timeout=timeout
            ),
            Provider.gemini: lambda key: GeminiAdapter.from_settings(
                gemini_settings, api_key=key, timeout=timeout
            ),
        }

        adapters = {}
        if openai_settings.api_key:
            adapters[Provider.openai] = factories[Provider.openai](openai_settings.api_key)
        if gemini_settings.api_key:
            adapters[Provider.gemini] = factories[Provider.gemini](gemini_settings.api_key)

        logger.info(f"Configured providers: {[p.value for p in adapters] or 'none'}")
        return cls(adapters=adapters, factories=factories)

    @property
    def configured(self) -> List[str]:
        return [provider.value for provider in self.adapters]

    def resolve(
        self, provider: Provider, credential: Optional[str] = None
    ) -> ProviderAdapter:
        """Adapter for a request, preferring the client's credential."""
        label = PROVIDER_LABELS[provider]
        credential = (credential or "").strip()

        if credential and provider in self.factories:
            try:
                return self.factories[provider](credential)
            except Exception as e:
                raise classify_provider_error(e, label) from e

        adapter = self.adapters.get(provider)
        if adapter is None:
            raise MissingCredential(f"{label} API key is not configured")
        return adapter

    def opposite(self, provider: Provider) -> Optional[ProviderAdapter]:
        """Server adapter of the other provider, used for evaluation."""
        return self.adapters.get(provider.opposite)
