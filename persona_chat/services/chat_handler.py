from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from loguru import logger

from persona_chat.config import Settings
from persona_chat.errors import (
    MissingField,
    UnsupportedProvider,
    classify_provider_error,
)
from persona_chat.schemas.chat import (
    PROVIDER_ALIASES,
    ChatRequest,
    ChatResult,
    Provider,
)
from persona_chat.services.envelope import decode_envelope
from persona_chat.services.evaluator import Evaluator
from persona_chat.services.prompts.personas import Persona, get_persona
from persona_chat.services.prompts.system_prompts import build_system_prompt
from persona_chat.services.providers import ProviderAdapter, ProviderRegistry
from persona_chat.services.relay import StreamRelay


@dataclass
class PreparedChat:
    message: str
    persona: Persona
    provider: Provider
    adapter: ProviderAdapter
    evaluator: Optional[Evaluator] = None


class ChatHandler:
    """Turns a chat request into a single answer or a relayed stream."""

    def __init__(self, registry: ProviderRegistry, settings: Settings):
        self.registry = registry
        self.settings = settings

    def _provider(self, name: Optional[str]) -> Provider:
        name = name or self.settings.default_provider
        try:
            return PROVIDER_ALIASES[name]
        except KeyError:
            raise UnsupportedProvider(f"Unsupported model: {name}") from None

    def _evaluator(self, provider: Provider) -> Optional[Evaluator]:
        adapter = self.registry.opposite(provider)
        if adapter is None:
            logger.warning(
                f"Evaluation requested but {provider.opposite.value} is not configured, skipping"
            )
            return None
        return Evaluator(adapter, timeout=self.settings.evaluation_timeout)

    def prepare(self, request: ChatRequest) -> PreparedChat:
        """Validate a request and pick its adapter. Performs no network I/O."""
        message = (request.message or "").strip()
        persona_id = (request.persona or "").strip()
        if not message or not persona_id:
            raise MissingField("Message and persona are required")

        persona = get_persona(persona_id)
        provider = self._provider(request.provider)
        adapter = self.registry.resolve(provider, request.credential)

        evaluator = self._evaluator(provider) if request.evaluate else None
        logger.info(
            f"Chat request - Persona: {persona.id}, Provider: {provider.value}, "
            f"Evaluation: {evaluator is not None}"
        )
        return PreparedChat(
            message=message,
            persona=persona,
            provider=provider,
            adapter=adapter,
            evaluator=evaluator,
        )

    async def complete(self, request: ChatRequest) -> ChatResult:
        """Single-shot mode: one provider call, envelope decoded when present."""
        chat = self.prepare(request)
        system_prompt = build_system_prompt(
            chat.persona, chat.message, envelope=self.settings.envelope_protocol
        )

        try:
            raw_response = await chat.adapter.complete_once(system_prompt, chat.message)
        except Exception as e:
            error = classify_provider_error(e, chat.adapter.label)
            logger.error(f"{chat.adapter.label} completion failed: {error.message}")
            raise error from e

        logger.debug(f"Raw response: {raw_response}")
        content = decode_envelope(raw_response)

        evaluation = None
        if chat.evaluator is not None:
            evaluation = await chat.evaluator.evaluate(chat.message, content)

        return ChatResult(
            content=content,
            provider=chat.provider.value,
            persona=chat.persona.id,
            evaluation=evaluation,
        )

    def open_stream(
        self,
        request: ChatRequest,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> StreamRelay:
        """Streaming mode. Request errors are raised here, before any frame."""
        chat = self.prepare(request)
        system_prompt = build_system_prompt(chat.persona, chat.message, envelope=False)
        return StreamRelay(
            adapter=chat.adapter,
            system_prompt=system_prompt,
            message=chat.message,
            evaluator=chat.evaluator,
            is_disconnected=is_disconnected,
            idle_timeout=self.settings.stream_idle_timeout,
        )
