"""Decoding of the ``{"step": ..., "content": ...}`` envelope models are
asked to reply with.

Models do not always comply: the JSON may be wrapped in a markdown fence,
emitted as one object per protocol step, or be missing entirely. Decoding
never fails; when no envelope can be read the raw text is returned as is.
"""
import json
import re
from typing import Any, Dict, List, Optional

_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)
_decoder = json.JSONDecoder()


def _strip_fence(text: str) -> str:
    match = _FENCE.match(text.strip())
    return match.group(1).strip() if match else text.strip()


def _decode_sequence(text: str) -> List[Any]:
    """Decode back-to-back JSON values. Raises ValueError on trailing junk."""
    values = []
    index = 0
    while index < len(text):
        while index < len(text) and text[index] in " \t\r\n,":
            index += 1
        if index >= len(text):
            break
        value, index = _decoder.raw_decode(text, index)
        values.append(value)
    if not values:
        raise ValueError("no JSON value found")
    return values


def _steps(values: List[Any]) -> List[Dict[str, Any]]:
    steps = []
    for value in values:
        items = value if isinstance(value, list) else [value]
        for item in items:
            if isinstance(item, dict) and isinstance(item.get("content"), str):
                steps.append(item)
    return steps


def decode_envelope(text: str) -> str:
    """Return the answer carried by an envelope, or ``text`` unchanged."""
    if not text:
        return text
    try:
        values = _decode_sequence(_strip_fence(text))
    except ValueError:
        return text

    steps = _steps(values)
    if not steps:
        return text

    for step in steps:
        if step.get("step") == "result":
            return step["content"]
    return steps[-1]["content"]


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """First JSON object found anywhere in free text, if any."""
    if not text:
        return None
    body = _strip_fence(text)
    start = body.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(body, start)
        except ValueError:
            start = body.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = body.find("{", start + 1)
    return None
