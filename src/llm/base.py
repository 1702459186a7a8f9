"""Provider interface and error hierarchy for text completion."""

from abc import ABC, abstractmethod


class LLMError(Exception):
    """Any provider failure, including a missing key or SDK."""


class LLMRateLimitError(LLMError):
    """Provider asked us to slow down; safe to retry."""


class LLMAuthError(LLMError):
    """Key rejected by the provider."""


class LLMProvider(ABC):
    """A hosted model that turns a system + user prompt into text.

    Implementations are synchronous; callers on an event loop run them in a
    worker thread.
    """

    provider_name: str = "base"
    default_model: str = ""

    def __init__(self, model: str | None = None):
        self.model = model or self.default_model

    @abstractmethod
    def complete(self, system: str, prompt: str, max_tokens: int = 2000) -> str:
        """Return the model's text reply, or raise LLMError."""
