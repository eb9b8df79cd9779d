from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Provider(str, Enum):
    openai = "openai"
    gemini = "gemini"

    @property
    def opposite(self) -> "Provider":
        return Provider.gemini if self is Provider.openai else Provider.openai


# Names the browser client has used for each provider
PROVIDER_ALIASES = {
    "openai": Provider.openai,
    "gpt": Provider.openai,
    "gemini": Provider.gemini,
}


class ChatRequest(BaseModel):
    """Chat request as posted by the browser.

    message and persona are optional here so that a missing field is
    reported by the handler as a MissingField error rather than a schema
    validation failure.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = Field(default=None, max_length=4096)
    persona: Optional[str] = None
    provider: Optional[str] = Field(default=None, alias="model")
    credential: Optional[str] = Field(default=None, alias="apiKey", repr=False)
    evaluate: bool = Field(default=False, alias="useEvaluation")
    stream: bool = True

    @field_validator("provider")
    @classmethod
    def normalize_provider(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip().lower() or None


class EvaluationResult(BaseModel):
    is_correct: bool = True
    explanation: str = ""
    corrected_text: Optional[str] = None
    skipped: bool = False


class ChatResult(BaseModel):
    step: str = "result"
    content: str
    provider: str
    persona: str
    evaluation: Optional[EvaluationResult] = None


class StreamChunk(BaseModel):
    content: Optional[str] = None
    done: Optional[bool] = None
    error: Optional[str] = None


class PersonaCard(BaseModel):
    id: str
    name: str
    role: str
    description: str


class ErrorResponse(BaseModel):
    error: str
