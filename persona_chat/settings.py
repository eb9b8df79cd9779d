import os
from dataclasses import dataclass
from dotenv import dotenv_values
from pathlib import Path

HOME = str(Path(__file__).parent)


# Process environment wins over the .env file
config = {**dotenv_values(str(Path(HOME).parent / ".env")), **os.environ}


@dataclass
class OpenAISettings:
    api_key: str = config.get("OPENAI_API_KEY", "")
    model_name: str = config.get("OPENAI_MODEL_NAME", "gpt-4o-mini")
    max_token: int = int(config.get("OPENAI_MAX_TOKEN", 1000))
    temperature: float = float(config.get("OPENAI_TEMPERATURE", 0.7))


@dataclass
class GeminiSettings:
    api_key: str = config.get("GEMINI_API_KEY", "")
    model_name: str = config.get("GEMINI_MODEL_NAME", "gemini-2.5-flash")
    max_token: int = int(config.get("GEMINI_MAX_TOKEN", 1000))
    temperature: float = float(config.get("GEMINI_TEMPERATURE", 0.7))


class ProviderSettings:
    openai = OpenAISettings()
    gemini = GeminiSettings()
