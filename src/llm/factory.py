"""Build a provider from config, falling back to whichever API key is present."""

import os

from .base import LLMError, LLMProvider

# name -> env var holding its key; order is auto-detect preference
_KEY_ENV = {
    "claude": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def _provider_class(name: str) -> type[LLMProvider]:
    if name == "claude":
        from .providers.claude import ClaudeProvider

        return ClaudeProvider
    if name == "openai":
        from .providers.openai import OpenAIProvider

        return OpenAIProvider
    raise LLMError(f"Unknown provider: {name}. Use: {', '.join(_KEY_ENV)}")


def _auto_detect_provider(api_key: str | None = None) -> str:
    """Pick a provider from the key prefix, else from the first env key set."""
    if api_key:
        if api_key.startswith("sk-ant-"):
            return "claude"
        if api_key.startswith("sk-"):
            return "openai"

    for name, env_var in _KEY_ENV.items():
        if os.getenv(env_var):
            return name
    raise LLMError(f"No LLM API key found. Set one of: {', '.join(_KEY_ENV.values())}")


def create_llm_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
) -> LLMProvider:
    """Instantiate a provider.

    ``provider`` of None or "auto" triggers detection. ``client`` injects a
    pre-built SDK client, mainly for tests.
    """
    name = provider or "auto"
    if name == "auto":
        name = _auto_detect_provider(api_key)

    cls = _provider_class(name)
    if api_key is None and client is None:
        api_key = os.getenv(_KEY_ENV[name])
    return cls(api_key=api_key, model=model, client=client)
