import asyncio
import pytest
from langchain_core.language_models.fake_chat_models import (
    FakeListChatModel,
    GenericFakeChatModel,
)
from langchain_core.messages import AIMessage

from persona_chat.errors import MissingCredential, ProviderError
from persona_chat.schemas.chat import Provider
from persona_chat.services.providers import (
    GeminiAdapter,
    OpenAIAdapter,
    ProviderRegistry,
    content_text,
)
from persona_chat.settings import GeminiSettings, OpenAISettings
from tests.fixtures.fake_providers import collect


class TestContentText:
    def test_string(self):
        assert content_text("hello") == "hello"

    def test_parts(self):
        parts = [{"type": "text", "text": "Han"}, {"type": "image_url"}, "ji"]
        assert content_text(parts) == "Hanji"

    def test_other(self):
        assert content_text(None) == ""


class TestAdapters:
    def test_complete_once(self):
        adapter = OpenAIAdapter(FakeListChatModel(responses=["Practice daily."]))
        text = asyncio.run(adapter.complete_once("system", "How to improve?"))
        assert text == "Practice daily."

    def test_empty_completion_is_an_error(self):
        adapter = GeminiAdapter(FakeListChatModel(responses=["   "]))
        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(adapter.complete_once("system", "Q"))
        assert "Gemini returned an empty completion" in exc_info.value.message

    def test_streaming_preserves_text_and_order(self):
        answer = "Simple si baat, roz code karo."
        adapter = GeminiAdapter(GenericFakeChatModel(messages=iter([AIMessage(content=answer)])))

        fragments = asyncio.run(collect(adapter.complete_streaming("system", "Q")))

        assert len(fragments) > 1
        assert all(fragments)
        assert "".join(fragments) == answer

    def test_prompt_shape(self):
        adapter = OpenAIAdapter(FakeListChatModel(responses=["x"]))
        system, human = adapter._prompt("be Piyush", "Hi")
        assert system.type == "system" and system.content == "be Piyush"
        assert human.type == "human" and human.content == "Hi"


class FakeProviderSettings:
    openai = OpenAISettings(api_key="sk-server")
    gemini = GeminiSettings(api_key="")


class TestRegistry:
    def test_from_settings_builds_configured_providers_only(self):
        registry = ProviderRegistry.from_settings(FakeProviderSettings, timeout=5)

        assert registry.configured == ["openai"]
        assert isinstance(registry.resolve(Provider.openai), OpenAIAdapter)
        assert registry.resolve(Provider.openai).llm.max_retries == 0

    def test_missing_server_key_without_client_key(self):
        registry = ProviderRegistry.from_settings(FakeProviderSettings, timeout=5)
        with pytest.raises(MissingCredential) as exc_info:
            registry.resolve(Provider.gemini)
        assert exc_info.value.message == "Gemini API key is not configured"

    def test_client_key_builds_fresh_adapter(self):
        registry = ProviderRegistry.from_settings(FakeProviderSettings, timeout=5)

        first = registry.resolve(Provider.openai, "sk-client")

        assert isinstance(first, OpenAIAdapter)
        assert first is not registry.resolve(Provider.openai)
        assert first.llm.openai_api_key.get_secret_value() == "sk-client"

    def test_opposite(self):
        registry = ProviderRegistry.from_settings(FakeProviderSettings, timeout=5)
        assert registry.opposite(Provider.gemini) is registry.adapters[Provider.openai]
        assert registry.opposite(Provider.openai) is None

    def test_factory_failure_is_classified(self):
        def broken(key):
            raise ValueError("Invalid API key format")

        registry = ProviderRegistry(factories={Provider.gemini: broken})
        with pytest.raises(MissingCredential):
            registry.resolve(Provider.gemini, "bad")
