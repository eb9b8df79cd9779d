"""
Tests for the cross-provider evaluator.

Covers verdict parsing (JSON and text markers), fail-open behaviour and
the correction fragment.
"""

import asyncio
import pytest

from persona_chat.errors import EvaluationError
from persona_chat.schemas.chat import EvaluationResult
from persona_chat.services.evaluator import Evaluator, format_correction, parse_evaluation
from tests.fixtures.fake_providers import FakeAdapter


class TestParseEvaluation:
    def test_json_correct(self):
        result = parse_evaluation('{"isCorrect": true, "explanation": "Accurate."}')
        assert result.is_correct is True
        assert result.explanation == "Accurate."
        assert result.corrected_text is None

    def test_json_incorrect_with_correction(self):
        result = parse_evaluation(
            '```json\n{"isCorrect": false, "explanation": "Wrong complexity.",'
            ' "correctedResponse": "Binary search is O(log n)."}\n```'
        )
        assert result.is_correct is False
        assert result.explanation == "Wrong complexity."
        assert result.corrected_text == "Binary search is O(log n)."

    def test_json_string_verdict(self):
        result = parse_evaluation('{"is_correct": "false", "corrected_response": "Fixed"}')
        assert result.is_correct is False
        assert result.corrected_text == "Fixed"

    def test_json_ambiguous_verdict_counts_as_correct(self):
        result = parse_evaluation('{"isCorrect": "maybe", "correctedResponse": "X"}')
        assert result.is_correct is True
        assert result.corrected_text is None

    def test_text_marker_incorrect(self):
        result = parse_evaluation(
            "Verdict: INCORRECT. The answer says Python is compiled.\n"
            "Corrected response: Python is interpreted (compiled to bytecode)."
        )
        assert result.is_correct is False
        assert result.explanation == "The answer says Python is compiled."
        assert result.corrected_text == "Python is interpreted (compiled to bytecode)."

    def test_text_marker_correct(self):
        result = parse_evaluation("**CORRECT**\nThe answer is complete.")
        assert result.is_correct is True
        assert result.explanation == "The answer is complete."

    def test_correctness_word_is_not_a_verdict(self):
        with pytest.raises(EvaluationError):
            parse_evaluation("Correctness depends on the context.")

    def test_no_verdict_raises(self):
        with pytest.raises(EvaluationError):
            parse_evaluation("I think it is fine overall.")


class TestFormatCorrection:
    def test_correct_result_has_no_fragment(self):
        assert format_correction(EvaluationResult(is_correct=True), "OpenAI") is None

    def test_skipped_result_has_no_fragment(self):
        result = EvaluationResult(is_correct=True, skipped=True)
        assert format_correction(result, "OpenAI") is None

    def test_fragment_is_delimited(self):
        result = EvaluationResult(
            is_correct=False, explanation="Off by one.", corrected_text="Use range(n)."
        )
        fragment = format_correction(result, "OpenAI")
        assert fragment.startswith("\n\n---\n**Correction (reviewed by OpenAI):**")
        assert "Off by one." in fragment
        assert fragment.endswith("\n\nUse range(n).")

    def test_incorrect_without_details_has_no_fragment(self):
        assert format_correction(EvaluationResult(is_correct=False), "Gemini") is None


class TestEvaluator:
    def test_uses_reviewer_adapter(self):
        reviewer = FakeAdapter(
            name="openai", label="OpenAI", reply='{"isCorrect": true, "explanation": "ok"}'
        )
        result = asyncio.run(Evaluator(reviewer).evaluate("Q?", "A."))

        assert result.is_correct is True
        assert result.skipped is False
        kind, system_prompt, user_turn = reviewer.calls[0]
        assert kind == "once"
        assert "isCorrect" in system_prompt
        assert "<question>\nQ?\n</question>" in user_turn
        assert "<answer>\nA.\n</answer>" in user_turn

    def test_provider_error_fails_open(self):
        reviewer = FakeAdapter(name="openai", label="OpenAI", error=ConnectionError("boom"))
        result = asyncio.run(Evaluator(reviewer).evaluate("Q?", "A."))
        assert result.is_correct is True
        assert result.skipped is True

    def test_malformed_output_fails_open(self):
        reviewer = FakeAdapter(name="openai", label="OpenAI", reply="no idea")
        result = asyncio.run(Evaluator(reviewer).evaluate("Q?", "A."))
        assert result.is_correct is True
        assert result.skipped is True

    def test_timeout_fails_open(self):
        class SlowAdapter(FakeAdapter):
            async def complete_once(self, system_prompt, message):
                await asyncio.sleep(1)
                return '{"isCorrect": false, "correctedResponse": "late"}'

        result = asyncio.run(Evaluator(SlowAdapter(), timeout=0.01).evaluate("Q?", "A."))
        assert result.is_correct is True
        assert result.skipped is True
