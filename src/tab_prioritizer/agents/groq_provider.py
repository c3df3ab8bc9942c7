"""
Groq inference provider.

Groq exposes an OpenAI-compatible chat completions API, so the official
OpenAI SDK is used with a custom base URL. Any other OpenAI-compatible
endpoint (OpenAI itself, vLLM, Ollama) works the same way.
"""

from typing import Any, Optional

import httpx
import openai
from openai import AsyncOpenAI
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tab_prioritizer.agents.inference_provider import InferenceProvider
from tab_prioritizer.config import PROVIDER_ATTEMPTS, RETRY_WAIT_MAX, Settings, get_logger
from tab_prioritizer.errors import MalformedResponse, ProviderUnavailable

logger = get_logger(__name__)

# Errors worth a second attempt; auth and request errors are not
TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


class GroqInferenceProvider(InferenceProvider):
    """Inference provider backed by an OpenAI-compatible chat completions API."""

    name = "groq"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.groq.com/openai/v1",
        model: str = "llama-3.1-70b-versatile",
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the Groq provider.

        Args:
            api_key: Groq API key
            base_url: OpenAI-compatible API root
            model: Chat model name
            timeout: Per-request timeout in seconds
            client: Pre-built AsyncOpenAI client (tests, shared pools)
        """
        self.model = model
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            max_retries=0,  # retries are handled by tenacity below
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GroqInferenceProvider":
        """Build a provider from application settings."""
        if not settings.groq_api_key:
            raise ValueError("GROQ_API_KEY is required for the Groq provider")
        return cls(
            api_key=settings.groq_api_key,
            base_url=settings.groq_base_url,
            model=settings.llm_model,
            timeout=settings.request_timeout,
        )

    @retry(
        stop=stop_after_attempt(PROVIDER_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    async def _create(self, **kwargs: Any) -> Any:
        return await self.client.chat.completions.create(**kwargs)

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        """Send one user prompt and return the first choice's message text."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._create(**kwargs)
        except openai.APIStatusError as e:
            raise ProviderUnavailable(f"Groq API error ({e.status_code})") from e
        except openai.APIError as e:
            raise ProviderUnavailable(f"Groq API unreachable: {e}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise MalformedResponse("Groq response contained no choices")

        content = choices[0].message.content
        if not content:
            raise MalformedResponse("Groq response contained no message content")

        return content.strip()

    async def aclose(self) -> None:
        await self.client.close()
