import pytest

from persona_chat.config import Settings
from persona_chat.services.chat_handler import ChatHandler
from tests.fixtures.fake_providers import FakeAdapter, make_registry


@pytest.fixture
def settings():
    return Settings(
        default_provider="gemini",
        envelope_protocol=True,
        stream_idle_timeout=5.0,
        evaluation_timeout=5.0,
    )


@pytest.fixture
def gemini():
    return FakeAdapter(name="gemini", label="Gemini")


@pytest.fixture
def openai():
    return FakeAdapter(name="openai", label="OpenAI")


@pytest.fixture
def handler_factory(settings):
    def _make(**adapters):
        return ChatHandler(registry=make_registry(**adapters), settings=settings)

    return _make
