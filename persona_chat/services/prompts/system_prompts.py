from persona_chat.services.prompts.personas import Persona


STEP_PROTOCOL = """\
IMPORTANT: You MUST follow the step-by-step protocol internally: analyse -> think -> output -> validate -> result

Internal process (do not show):
1. analyse - Analyze the user's question internally
2. think - Think about the approach internally
3. output - Plan your output internally
4. validate - Validate your approach internally
5. result - Provide ONLY your final answer"""


PLAIN_TEXT_OUTPUT = """\
Please think through the steps internally but only respond with your final answer as plain text. \
Do NOT include any JSON, step labels, or technical formatting. Just provide your natural, \
conversational response directly as the persona would speak."""


ENVELOPE_OUTPUT = """\
Think through the steps internally and reply with exactly one JSON object and nothing else:
{"step": "result", "content": "<your final answer, written as the persona would speak>"}"""


EVALUATION_PROMPT = """\
You are a strict reviewer of answers given by a coding mentor chatbot.
Judge whether the answer below is correct and complete for the user's question.

Reply with exactly one JSON object and nothing else:
{"isCorrect": true or false, "explanation": "<one or two sentences>", "correctedResponse": "<a corrected full answer, only when isCorrect is false>"}

Only mark the answer as incorrect when it contains a factual or technical mistake or misses an essential part of the question. \
Style, tone and language mixing are not mistakes."""


def build_system_prompt(persona: Persona, message: str, envelope: bool = False) -> str:
    """System prompt for a persona with the step protocol appended."""
    output_rule = ENVELOPE_OUTPUT if envelope else PLAIN_TEXT_OUTPUT
    return (
        f"{persona.system_prompt}\n"
        f"{STEP_PROTOCOL}\n\n"
        f'User\'s question: "{message}"\n\n'
        f"{output_rule}"
    )


def build_evaluation_prompt(message: str, answer: str) -> str:
    """User turn sent to the reviewing provider."""
    return (
        f"<question>\n{message}\n</question>\n\n"
        f"<answer>\n{answer}\n</answer>"
    )
