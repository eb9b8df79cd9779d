import asyncio
from enum import Enum, auto
from typing import AsyncIterator, Awaitable, Callable, List, Optional
from loguru import logger

from persona_chat.errors import ProviderError, classify_provider_error
from persona_chat.schemas.chat import EvaluationResult
from persona_chat.services.evaluator import Evaluator, format_correction
from persona_chat.services.frames import content_frame, done_frame
from persona_chat.services.providers.base import ProviderAdapter


class RelayState(Enum):
    open = auto()
    streaming = auto()
    completed = auto()
    evaluating = auto()
    evaluated = auto()
    errored = auto()


_TRANSITIONS = {
    RelayState.open: {RelayState.streaming, RelayState.errored},
    RelayState.streaming: {RelayState.completed, RelayState.errored},
    RelayState.completed: {RelayState.evaluating},
    RelayState.evaluating: {RelayState.evaluated},
    RelayState.evaluated: set(),
    RelayState.errored: set(),
}


class StreamRelay:
    """Forward one provider stream to the client as frames.

    Every non-empty fragment becomes one content frame, in provider order,
    and exactly one terminal frame closes the stream. The full text is
    accumulated for the optional evaluation that runs once the provider
    stream has finished.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        system_prompt: str,
        message: str,
        evaluator: Optional[Evaluator] = None,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        idle_timeout: Optional[float] = None,
    ):
        self.adapter = adapter
        self.system_prompt = system_prompt
        self.message = message
        self.evaluator = evaluator
        self.is_disconnected = is_disconnected
        self.idle_timeout = idle_timeout

        self.state = RelayState.open
        self.evaluation: Optional[EvaluationResult] = None
        self._parts: List[str] = []

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def _transition(self, state: RelayState):
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid relay transition {self.state.name} -> {state.name}"
            )
        self.state = state

    async def _next(self, stream: AsyncIterator[str]) -> str:
        if self.idle_timeout:
            return await asyncio.wait_for(stream.__anext__(), timeout=self.idle_timeout)
        return await stream.__anext__()

    async def _client_gone(self) -> bool:
        if self.is_disconnected is None:
            return False
        return await self.is_disconnected()

    async def frames(self) -> AsyncIterator[str]:
        self._transition(RelayState.streaming)
        stream = self.adapter.complete_streaming(self.system_prompt, self.message)

        try:
            while True:
                if await self._client_gone():
                    logger.info("Client disconnected, stopping relay")
                    self._transition(RelayState.errored)
                    return

                try:
                    fragment = await self._next(stream)
                except StopAsyncIteration:
                    break

                self._parts.append(fragment)
                yield content_frame(fragment)

            if not self._parts:
                raise ProviderError(f"{self.adapter.label} returned an empty completion")

        except asyncio.TimeoutError:
            logger.error(f"{self.adapter.label} stream idle for {self.idle_timeout}s")
            self._transition(RelayState.errored)
            yield done_frame(f"{self.adapter.label} stream timed out")
            return
        except Exception as e:
            error = classify_provider_error(e, self.adapter.label)
            logger.error(f"Stream relay error: {error.message}")
            self._transition(RelayState.errored)
            yield done_frame(error.message)
            return
        finally:
            await stream.aclose()

        self._transition(RelayState.completed)
        logger.info(f"Relayed {len(self._parts)} chunks from {self.adapter.label}")

        if self.evaluator is not None:
            if await self._client_gone():
                logger.info("Client disconnected, skipping evaluation")
                return
            self._transition(RelayState.evaluating)
            self.evaluation = await self.evaluator.evaluate(self.message, self.text)
            self._transition(RelayState.evaluated)

            correction = format_correction(self.evaluation, self.evaluator.reviewer)
            if correction:
                yield content_frame(correction)

        yield done_frame()
