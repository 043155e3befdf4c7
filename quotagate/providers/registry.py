"""Provider registry — the singleton model client used for generation."""

from quotagate.providers.base import LLMProvider
from quotagate.providers.openai import OpenAIProvider

_provider: LLMProvider | None = None


def get_provider() -> LLMProvider:
    """Get or create the provider instance. Also used as a FastAPI dependency."""
    global _provider
    if _provider is None:
        _provider = OpenAIProvider()
    return _provider


async def close_provider() -> None:
    """Gracefully shut down the provider connection."""
    global _provider
    if _provider is not None:
        await _provider.close()
    _provider = None
