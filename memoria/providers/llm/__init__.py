"""LLM providers for text generation."""

from memoria.providers.llm.base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    MalformedOutputError,
    ProviderError,
    ProviderTimeoutError,
)
from memoria.providers.llm.mock import MockLLMProvider
from memoria.providers.llm.ollama import OllamaLLMProvider

__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "ProviderError",
    "ProviderTimeoutError",
    "MalformedOutputError",
    "MockLLMProvider",
    "OllamaLLMProvider",
]
