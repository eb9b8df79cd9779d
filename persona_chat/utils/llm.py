from typing import Optional
from langchain_openai import ChatOpenAI
from langchain_google_genai import ChatGoogleGenerativeAI

from persona_chat.settings import OpenAISettings, GeminiSettings


def build_openai_llm(
    settings: OpenAISettings, api_key: Optional[str] = None, timeout: float = 60.0
) -> ChatOpenAI:
    """Chat model for the OpenAI chat-completion API"""
    return ChatOpenAI(
        api_key=api_key or settings.api_key,
        model=settings.model_name,
        temperature=settings.temperature,
        max_tokens=settings.max_token,
        timeout=timeout,
        max_retries=0,
    )


def build_gemini_llm(
    settings: GeminiSettings, api_key: Optional[str] = None, timeout: float = 60.0
) -> ChatGoogleGenerativeAI:
    """Chat model for the Gemini generative-content API"""
    return ChatGoogleGenerativeAI(
        google_api_key=api_key or settings.api_key,
        model=settings.model_name,
        temperature=settings.temperature,
        max_output_tokens=settings.max_token,
        timeout=timeout,
        max_retries=0,
    )
