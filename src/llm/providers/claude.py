"""Anthropic Messages API provider."""

from ..base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError


class ClaudeProvider(LLMProvider):
    provider_name = "claude"
    default_model = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        super().__init__(model)
        if client is None:
            try:
                from anthropic import Anthropic
            except ImportError:
                raise LLMError("anthropic package not installed. Run: pip install anthropic")
            client = Anthropic(api_key=api_key)
        self.client = client

    @staticmethod
    def _translate(e: Exception) -> LLMError:
        from anthropic import APIError, AuthenticationError, RateLimitError

        if isinstance(e, AuthenticationError):
            return LLMAuthError(f"Claude auth failed: {e}")
        if isinstance(e, RateLimitError):
            return LLMRateLimitError(f"Claude rate limit: {e}")
        if isinstance(e, APIError):
            return LLMError(f"Claude API error: {e}")
        return LLMError(f"Claude error: {e}")

    def complete(self, system: str, prompt: str, max_tokens: int = 2000) -> str:
        request = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        try:
            response = self.client.messages.create(**request)
        except Exception as e:
            raise self._translate(e) from e

        # Only text blocks carry .text
        text = "".join(block.text for block in response.content if getattr(block, "text", None))
        if not text:
            raise LLMError("Claude returned no text content")
        return text
