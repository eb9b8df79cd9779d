import json
from typing import Optional

from persona_chat.schemas.chat import StreamChunk

FRAME_PREFIX = "data: "


def encode_frame(chunk: StreamChunk) -> str:
    """Server-sent-event style frame: ``data: {json}`` and a blank line."""
    payload = chunk.model_dump(exclude_none=True)
    return f"{FRAME_PREFIX}{json.dumps(payload, ensure_ascii=False)}\n\n"


def content_frame(text: str) -> str:
    return encode_frame(StreamChunk(content=text))


def done_frame(error: Optional[str] = None) -> str:
    return encode_frame(StreamChunk(done=True, error=error))


def decode_frame(line: str) -> Optional[StreamChunk]:
    """Parse one line of a frame stream. Non-data lines and junk give None."""
    if not line or not line.startswith(FRAME_PREFIX):
        return None
    try:
        payload = json.loads(line[len(FRAME_PREFIX):])
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return StreamChunk(
        content=payload.get("content") if isinstance(payload.get("content"), str) else None,
        done=payload.get("done") is True or None,
        error=payload.get("error") if isinstance(payload.get("error"), str) else None,
    )
