from unittest.mock import MagicMock, Mock

import requests

from persona_chat import ui
from persona_chat.services.frames import content_frame, done_frame


class FakeResponse:
    def __init__(self, body: str):
        self.body = body

    def iter_lines(self, decode_unicode=True):
        return iter(self.body.split("\n"))


def test_stream_reply_joins_content_frames():
    body = content_frame("Hanji ") + content_frame("bhai!") + done_frame()
    placeholder = Mock()

    reply = ui.stream_reply(FakeResponse(body), placeholder)

    assert reply == "Hanji bhai!"
    placeholder.markdown.assert_called_with("Hanji bhai!")


def test_stream_reply_stops_at_terminal_frame():
    body = content_frame("a") + done_frame() + content_frame("ignored")
    assert ui.stream_reply(FakeResponse(body), Mock()) == "a"


def test_stream_reply_shows_error_frame():
    body = content_frame("partial") + done_frame("Gemini rate limit exceeded")
    reply = ui.stream_reply(FakeResponse(body), Mock())
    assert reply.startswith("partial")
    assert "rate limited" in reply


def test_friendly_errors():
    assert "API key not configured" in ui.friendly_error("OpenAI API key is not configured")
    assert ui.friendly_error("HTTP 500").startswith("Server error")
    assert "No response" in ui.friendly_error("No response")
    assert ui.friendly_error("boom") == "Error: boom"


def test_switching_persona_resets_history():
    session = ui.ChatSessionState()
    session.persona = "Hitesh"
    session.messages = [{"role": "user", "content": "Hi"}]

    ui.select_persona(session, "Hitesh")
    assert session.messages

    ui.select_persona(session, "Piyush")
    assert session.persona == "Piyush"
    assert session.messages == []


def test_sanitize_input_strips_markup():
    assert ui.sanitize_input("<script>alert(1)</script>Hi") == "alert(1)Hi"


class DroppedResponse:
    status_code = 200

    def iter_lines(self, decode_unicode=True):
        yield content_frame("Hanji ").strip()
        raise requests.exceptions.ChunkedEncodingError("Connection broken")


def test_dropped_stream_is_recorded_as_error(monkeypatch):
    monkeypatch.setattr(ui, "st", MagicMock())
    monkeypatch.setattr(ui.requests, "post", lambda *args, **kwargs: DroppedResponse())
    session = ui.ChatSessionState()
    session.persona = "Hitesh"

    ui.chat_with_backend("Is DSA important?", session)

    assert [m["role"] for m in session.messages] == ["user", "assistant"]
    assert "connection dropped" in session.messages[-1]["content"]
    assert session.error_count == 1
