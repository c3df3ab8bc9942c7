"""
Inference provider interface.

The engine talks to text-generation services only through this interface,
so the Groq client, a local model server, or a test double can be swapped in
without touching the analyzer or the clusterer.
"""

from abc import ABC, abstractmethod


class InferenceProvider(ABC):
    """Abstract base for chat-completion style inference providers."""

    name: str = "inference"

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        """
        Generate a completion for a single user prompt.

        Args:
            prompt: The user message
            max_tokens: Upper bound on generated tokens
            temperature: Sampling temperature
            json_mode: Ask the service for JSON-object output, where supported

        Returns:
            The generated message text

        Raises:
            ProviderUnavailable: If the service cannot be reached or errors
            MalformedResponse: If the service answers without message content
        """

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None
