"""OpenAI chat completions provider (optional extra)."""

from ..base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError


class OpenAIProvider(LLMProvider):
    provider_name = "openai"
    default_model = "gpt-4o-mini"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        super().__init__(model)
        if client is None:
            try:
                from openai import OpenAI
            except ImportError:
                raise LLMError("openai package not installed. Run: pip install 'cycle-insights[openai]'")
            client = OpenAI(api_key=api_key)
        self.client = client

    @staticmethod
    def _translate(e: Exception) -> LLMError:
        from openai import APIError, AuthenticationError, RateLimitError

        if isinstance(e, AuthenticationError):
            return LLMAuthError(f"OpenAI auth failed: {e}")
        if isinstance(e, RateLimitError):
            return LLMRateLimitError(f"OpenAI rate limit: {e}")
        if isinstance(e, APIError):
            return LLMError(f"OpenAI API error: {e}")
        return LLMError(f"OpenAI error: {e}")

    def complete(self, system: str, prompt: str, max_tokens: int = 2000) -> str:
        messages = [{"role": "user", "content": prompt}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        try:
            response = self.client.chat.completions.create(
                model=self.model, max_tokens=max_tokens, messages=messages
            )
        except Exception as e:
            raise self._translate(e) from e

        content = response.choices[0].message.content
        if not content:
            raise LLMError("OpenAI returned an empty completion")
        return content
