import streamlit as st
import requests
import datetime
import json
import hashlib
import os
import bleach
from loguru import logger

from persona_chat.services.frames import decode_frame
from persona_chat.services.prompts.personas import list_personas

API_URL = os.getenv("API_URL", "http://localhost:8000/api/chat")
PERSONAS_URL = os.getenv("PERSONAS_URL", "http://localhost:8000/api/personas")

MODELS = {"gemini": "Gemini", "openai": "GPT"}


class ChatSessionState:
    """Chat session kept per browser tab"""

    def __init__(self):
        self.messages = []
        self.error_count = 0
        self.last_request_time = None
        self.request_count = 0
        self.persona = None
        self.model = "gemini"
        self.use_evaluation = False
        # Provider keys typed by the user, keyed by provider name
        self.api_keys = {}


def init_session_state():
    if "chat_session" not in st.session_state:
        st.session_state.chat_session = ChatSessionState()


def sanitize_input(text: str) -> str:
    """Sanitize user input to prevent XSS"""
    return bleach.clean(text, tags=[], strip=True)


def rate_limit_check(session) -> bool:
    """Simple rate limiting"""
    now = datetime.datetime.now()

    if session.last_request_time:
        if (now - session.last_request_time).seconds < 1:
            session.request_count += 1
            if session.request_count > 5:  # Max 5 requests per second
                return False
        else:
            session.request_count = 0

    session.last_request_time = now
    return True


@st.cache_data(ttl=300)
def fetch_personas():
    """Persona cards from the API, or the bundled table when it is down"""
    try:
        response = requests.get(PERSONAS_URL, timeout=5)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        logger.warning(f"Could not load personas from API: {str(e)}")
        return [
            {
                "id": persona.id,
                "name": persona.display_name,
                "role": persona.role,
                "description": persona.description,
            }
            for persona in list_personas()
        ]


def select_persona(session, persona_id: str):
    """Switching persona starts a new conversation"""
    if session.persona != persona_id:
        session.persona = persona_id
        session.messages = []
        session.error_count = 0


def friendly_error(error: str) -> str:
    """Map an error string to a message for the chat window"""
    lowered = error.lower()
    if "api key" in lowered:
        return "API key not configured. Add your key in the sidebar or check the server environment."
    if "rate limit" in lowered:
        return "The AI model is rate limited right now. Please try again in a moment."
    if "http" in lowered:
        return f"Server error: {error}"
    if "no response" in lowered:
        return "No response from AI model. Please try again."
    return f"Error: {error}"


def create_sidebar(session, personas):
    with st.sidebar:
        st.title("⚙️ Settings")

        st.subheader("🧑‍🏫 Select Your Mentor")
        for persona in personas:
            selected = session.persona == persona["id"]
            with st.container(border=True):
                st.markdown(f"**{persona['name']}**  \n_{persona['role']}_")
                st.caption(persona["description"])
                if st.button(
                    "✅ Chatting" if selected else "Start Chatting",
                    key=f"persona_{persona['id']}",
                    disabled=selected,
                ):
                    select_persona(session, persona["id"])
                    st.rerun()

        st.subheader("🤖 Model")
        session.model = st.radio(
            "Choose model",
            options=list(MODELS),
            format_func=lambda key: MODELS[key],
            index=list(MODELS).index(session.model),
            horizontal=True,
        )
        session.use_evaluation = st.toggle(
            "Cross-check answers with the other model",
            value=session.use_evaluation,
        )

        st.subheader("🔑 API Key")
        current_key = session.api_keys.get(session.model, "")
        new_key = st.text_input(
            f"{MODELS[session.model]} API key (optional)",
            value=current_key,
            type="password",
            help="Kept only in this browser session. Leave empty to use the server key.",
        )
        if new_key.strip():
            session.api_keys[session.model] = new_key.strip()
        elif current_key:
            session.api_keys.pop(session.model, None)


def display_chat_history(session, persona_name: str):
    """Display the chat history"""
    if session.messages:
        for message in session.messages:
            with st.chat_message(message["role"]):
                st.markdown(
                    f"<div class='timestamp'>{message.get('timestamp', '')}</div>",
                    unsafe_allow_html=True,
                )
                st.markdown(message.get("content", ""))
    else:
        st.info(
            f"👋 Start a conversation with {persona_name}! "
            "Ask about coding, development, or any tech questions you have."
        )


def stream_reply(response, placeholder) -> str:
    """Render content frames as they arrive. Returns the full reply."""
    reply = ""
    for line in response.iter_lines(decode_unicode=True):
        chunk = decode_frame(line)
        if chunk is None:
            continue
        if chunk.content:
            reply += chunk.content
            placeholder.markdown(reply + "▌")
        if chunk.done:
            if chunk.error:
                reply += f"\n\n⚠️ {friendly_error(chunk.error)}"
            break
    placeholder.markdown(reply)
    return reply


def chat_with_backend(user_message: str, session):
    """Send one message and stream the persona's reply"""
    if not rate_limit_check(session):
        st.error("Too many requests. Please wait a moment.")
        return

    clean_message = sanitize_input(user_message)
    timestamp = datetime.datetime.now().strftime("%H:%M:%S")

    with st.chat_message("user"):
        st.markdown(f"<div class='timestamp'>{timestamp}</div>", unsafe_allow_html=True)
        st.markdown(clean_message)

    session.messages.append(
        {"role": "user", "content": clean_message, "timestamp": timestamp}
    )

    payload = {
        "message": clean_message,
        "persona": session.persona,
        "model": session.model,
        "useEvaluation": session.use_evaluation,
        "stream": True,
    }
    api_key = session.api_keys.get(session.model)
    if api_key:
        payload["apiKey"] = api_key

    with st.chat_message("assistant"):
        placeholder = st.empty()
        try:
            with st.spinner("🤔 Thinking..."):
                response = requests.post(API_URL, json=payload, stream=True, timeout=180)

            if response.status_code == 200:
                bot_response = stream_reply(response, placeholder)
                if not bot_response:
                    bot_response = friendly_error("No response")
                    placeholder.markdown(bot_response)
            else:
                try:
                    error = response.json().get("error", "")
                except ValueError:
                    error = ""
                bot_response = friendly_error(error or f"HTTP {response.status_code}")
                placeholder.error(bot_response)
                session.error_count += 1

        except requests.exceptions.Timeout:
            bot_response = "⚠️ Request timed out. Please try again."
            placeholder.error(bot_response)
            session.error_count += 1
        except requests.exceptions.ConnectionError:
            bot_response = "⚠️ Connection failed. Is the server running?"
            placeholder.error(bot_response)
            session.error_count += 1
        except requests.exceptions.RequestException as e:
            # Server went away mid-stream (ChunkedEncodingError and friends)
            logger.error(f"Chat stream failed: {str(e)}")
            bot_response = "⚠️ The connection dropped before the reply finished. Please try again."
            placeholder.error(bot_response)
            session.error_count += 1

    session.messages.append(
        {"role": "assistant", "content": bot_response, "timestamp": timestamp}
    )

    # Limit chat history to 50 messages
    if len(session.messages) > 50:
        session.messages = session.messages[-50:]

    if session.error_count >= 3:
        st.warning("👉 Tip: If errors persist, try switching models or clearing the chat")


def chatbot_ui(session, personas):
    persona = next((p for p in personas if p["id"] == session.persona), None)
    if persona is None:
        st.info("👈 Select a mentor in the sidebar to start chatting.")
        return

    st.subheader(f"💬 Chat with {persona['name']}")
    st.caption("Ask me anything about coding, development, or tech!")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("🗑️ Clear Chat"):
            session.messages = []
            st.rerun()
    with col2:
        if session.messages:
            chat_export = {
                "persona": session.persona,
                "model": session.model,
                "messages": session.messages,
                "exported_at": datetime.datetime.now().isoformat(),
            }
            export_data = json.dumps(chat_export, indent=2, ensure_ascii=False)
            timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
            content_hash = hashlib.md5(export_data.encode()).hexdigest()[:8]
            st.download_button(
                "📥 Export Chat",
                data=export_data,
                file_name=f"chat_{session.persona}_{timestamp}_{content_hash}.json",
                mime="application/json",
            )

    display_chat_history(session, persona["name"])

    user_input = st.chat_input("Type your message...")
    if user_input:
        if len(user_input.strip()) > 0:
            chat_with_backend(user_input, session)
        else:
            st.warning("Please enter a valid message")


def main():
    st.set_page_config(
        page_title="Persona Chat",
        page_icon="🧑‍🏫",
        layout="wide",
    )

    init_session_state()
    session = st.session_state.chat_session
    personas = fetch_personas()

    create_sidebar(session, personas)

    st.title("🧑‍🏫 Persona Chat")
    chatbot_ui(session, personas)

    st.markdown(
        """
    <style>
        .timestamp {
            font-size: 0.75em;
            color: #888;
            margin-bottom: 6px;
            font-weight: 500;
        }
        .stButton button {
            border-radius: 20px;
            font-weight: 500;
        }
    </style>
    """,
        unsafe_allow_html=True,
    )


if __name__ == "__main__":
    main()
