import asyncio
import re
from typing import Any, Optional
from loguru import logger

from persona_chat.errors import EvaluationError
from persona_chat.schemas.chat import EvaluationResult
from persona_chat.services.envelope import extract_json_object
from persona_chat.services.prompts.system_prompts import (
    EVALUATION_PROMPT,
    build_evaluation_prompt,
)
from persona_chat.services.providers.base import ProviderAdapter

_VERDICT_KEYS = ("isCorrect", "is_correct", "correct")
_CORRECTED_KEYS = ("correctedResponse", "corrected_response", "correctedText", "corrected_text")

# A line starting with the verdict, e.g. "Verdict: INCORRECT" or "**Correct**"
_VERDICT_LINE = re.compile(
    r"^\W*(?:verdict|result|status|evaluation)?\W*(incorrect|correct)\b",
    re.IGNORECASE | re.MULTILINE,
)
_CORRECTED_SECTION = re.compile(
    r"corrected(?:\s+(?:response|answer))?\s*:\s*(.+)", re.IGNORECASE | re.DOTALL
)


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "correct"):
            return True
        if lowered in ("false", "no", "incorrect"):
            return False
    return None


def _clean(text: str) -> str:
    return text.strip().lstrip(":.*- ").strip()


def _first_text(data: dict, keys) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_evaluation(text: str) -> EvaluationResult:
    """Read a reviewer's verdict.

    A verdict that is present but ambiguous counts as correct. Output with
    no verdict at all raises EvaluationError.
    """
    data = extract_json_object(text)
    if data is not None and any(key in data for key in _VERDICT_KEYS):
        verdict = next(_as_bool(data[key]) for key in _VERDICT_KEYS if key in data)
        explanation = data.get("explanation")
        explanation = explanation.strip() if isinstance(explanation, str) else ""
        if verdict is False:
            return EvaluationResult(
                is_correct=False,
                explanation=explanation,
                corrected_text=_first_text(data, _CORRECTED_KEYS),
            )
        return EvaluationResult(is_correct=True, explanation=explanation)

    match = _VERDICT_LINE.search(text or "")
    if match is None:
        raise EvaluationError("Evaluation output has no verdict")

    rest = text[match.end():]
    if match.group(1).lower() == "incorrect":
        corrected = _CORRECTED_SECTION.search(rest)
        return EvaluationResult(
            is_correct=False,
            explanation=_clean(rest[: corrected.start() if corrected else None]),
            corrected_text=corrected.group(1).strip() if corrected else None,
        )
    return EvaluationResult(is_correct=True, explanation=_clean(rest))


def format_correction(result: EvaluationResult, reviewer: str) -> Optional[str]:
    """Follow-up fragment shown after the original answer, or None."""
    if result.is_correct or result.skipped:
        return None
    if not result.corrected_text and not result.explanation:
        return None

    parts = [f"\n\n---\n**Correction (reviewed by {reviewer}):**"]
    if result.explanation:
        parts.append(f" {result.explanation}")
    if result.corrected_text:
        parts.append(f"\n\n{result.corrected_text}")
    return "".join(parts)


class Evaluator:
    """Best-effort review of a finished answer by another provider."""

    def __init__(self, adapter: ProviderAdapter, timeout: float = 30.0):
        self.adapter = adapter
        self.timeout = timeout

    @property
    def reviewer(self) -> str:
        return self.adapter.label

    async def evaluate(self, message: str, answer: str) -> EvaluationResult:
        """Never raises; any failure is reported as a skipped, correct result."""
        try:
            raw = await asyncio.wait_for(
                self.adapter.complete_once(
                    EVALUATION_PROMPT, build_evaluation_prompt(message, answer)
                ),
                timeout=self.timeout,
            )
            result = parse_evaluation(raw)
        except asyncio.TimeoutError:
            logger.warning(f"Evaluation by {self.reviewer} timed out after {self.timeout}s")
            return EvaluationResult(is_correct=True, explanation="Evaluation skipped", skipped=True)
        except Exception as e:
            logger.warning(f"Evaluation by {self.reviewer} skipped: {str(e)}")
            return EvaluationResult(is_correct=True, explanation="Evaluation skipped", skipped=True)

        logger.info(f"Evaluation by {self.reviewer}: is_correct={result.is_correct}")
        return result
