"""Mock LLM provider for testing."""

import asyncio
from typing import Any

from memoria.providers.llm.base import LLMMessage, LLMProvider, LLMResponse


class MockLLMProvider(LLMProvider):
    """Mock LLM provider for testing.

    Returns configurable responses without making actual API calls.
    """

    def __init__(
        self,
        default_response: str = "Mock response",
        default_model: str = "mock-model",
        responses: dict[str, str] | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        """Initialize mock provider.

        Args:
            default_response: Response to return when no trigger matches
            default_model: Model name to report
            responses: Map of trigger substring to response; the first
                trigger found in the last message wins
            delay: Seconds to sleep per call, for timeout tests
            error: Exception raised on every call, for failure tests
        """
        self._default_response = default_response
        self._default_model = default_model
        self._responses = responses or {}
        self.delay = delay
        self.error = error
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def clear_history(self) -> None:
        self._call_history.clear()

    def set_response(self, trigger: str, response: str) -> None:
        """Set a response for messages containing the trigger."""
        self._responses[trigger] = response

    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate mock response."""
        self._call_history.append({
            "messages": messages,
            "model": model or self._default_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "kwargs": kwargs,
        })

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        content = self._default_response
        if messages:
            last_message = messages[-1].content
            for trigger, response in self._responses.items():
                if trigger in last_message:
                    content = response
                    break

        prompt_tokens = sum(len(m.content) // 4 for m in messages)
        return LLMResponse(
            content=content,
            model=model or self._default_model,
            finish_reason="stop",
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": len(content) // 4,
                "total_tokens": prompt_tokens + len(content) // 4,
            },
        )
