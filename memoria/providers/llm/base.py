"""LLM data models, provider interface and error types.

- LLMMessage: Input message format
- LLMResponse: Output response format
- LLMProvider: Request/response capability consumed by the memory engine
- Error types for the failure modes the engine degrades on
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from memoria.errors import BackendError


class LLMMessage(BaseModel):
    """A message in a conversation."""

    role: str = Field(..., description="Role: system, user, or assistant")
    content: str = Field(..., description="Message content")


class LLMResponse(BaseModel):
    """Response from an LLM call."""

    content: str = Field(..., description="Generated text")
    model: str = Field(..., description="Model used")
    finish_reason: str | None = Field(
        default=None, description="Why generation stopped"
    )
    usage: dict[str, int] | None = Field(
        default=None, description="Token usage stats"
    )
    raw_response: dict[str, Any] | None = Field(
        default=None, description="Raw provider response"
    )


class LLMProvider(ABC):
    """Abstract interface for text generation."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion for a message list.

        Raises:
            ProviderTimeoutError: If the backend does not answer in time
            ProviderError: If the backend is unavailable or errors
            MalformedOutputError: If the backend answer cannot be read
        """
        pass

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate text for a single prompt."""
        messages = []
        if system:
            messages.append(LLMMessage(role="system", content=system))
        messages.append(LLMMessage(role="user", content=prompt))
        response = await self.generate(messages, **kwargs)
        return response.content

    async def close(self) -> None:
        """Release network resources, if any."""
        return None


# ============================================================================
# Error Types
# ============================================================================


class ProviderError(BackendError):
    """Base exception for provider errors."""

    pass


class ProviderTimeoutError(ProviderError):
    """Backend did not answer within the configured timeout."""

    pass


class MalformedOutputError(ProviderError):
    """Backend answered with something that could not be parsed."""

    pass
