"""Abstract base for LLM providers."""

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Base class for the language model behind the generation endpoint."""

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one system + user message pair and return the reply text.

        Raises:
            HTTPException: 502/504 when the upstream cannot be reached or
                returns something unusable.
        """
        ...

    async def close(self) -> None:
        """Cleanup resources. Override if provider holds connections."""
        pass
