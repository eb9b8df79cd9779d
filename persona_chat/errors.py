import re
from typing import Optional


class ChatError(Exception):
    """Base error for a chat request. Carries the HTTP status it maps to."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingField(ChatError):
    status_code = 400


class PersonaNotFound(ChatError):
    status_code = 400


class UnsupportedProvider(ChatError):
    status_code = 400


class MissingCredential(ChatError):
    status_code = 400


class ProviderError(ChatError):
    status_code = 500


class RateLimited(ProviderError):
    status_code = 429


class EvaluationError(ChatError):
    """Raised inside the evaluator only; always swallowed."""



_CREDENTIAL_STATUS = (401, 403)
_RATE_LIMIT_STATUS = (429,)

_CREDENTIAL_MARKERS = re.compile(
    r"api[ _]?key|unauthori[sz]ed|permission|\b40[13]\b", re.IGNORECASE
)
_RATE_LIMIT_MARKERS = re.compile(
    r"rate ?limit|quota|resource_exhausted|too many requests|\b429\b", re.IGNORECASE
)


def _status_of(exc: Exception) -> Optional[int]:
    """HTTP status carried by an SDK error (openai status_code, google code)."""
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def classify_provider_error(exc: Exception, label: str = "Provider") -> ChatError:
    """Map a provider exception to a ChatError by its status, else its text."""
    if isinstance(exc, ChatError):
        return exc

    status = _status_of(exc)
    if status in _CREDENTIAL_STATUS:
        return MissingCredential(f"{label} API key is not configured or is invalid")
    if status in _RATE_LIMIT_STATUS:
        return RateLimited(f"{label} rate limit exceeded, please try again later")

    text = str(exc)
    if _RATE_LIMIT_MARKERS.search(text):
        return RateLimited(f"{label} rate limit exceeded, please try again later")
    if _CREDENTIAL_MARKERS.search(text):
        return MissingCredential(f"{label} API key is not configured or is invalid")
    return ProviderError(f"{label} request failed: {exc}")
