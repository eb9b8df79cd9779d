from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    api_rate_limit: int = 60  # requests per minute
    allowed_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Provider used when the request does not name one
    default_provider: str = "gemini"

    # Seconds; provider calls are never retried
    provider_timeout: float = 60.0
    stream_idle_timeout: float = 60.0
    evaluation_timeout: float = 30.0

    # Ask single-shot answers for a {"step": "result", "content": ...} envelope
    envelope_protocol: bool = True

    class Config:
        env_file = ".env"
        extra = "ignore"  # .env also holds provider keys

settings = Settings()
