"""Embedding providers."""

from memoria.providers.embedding.base import EmbeddingProvider, EmbeddingResponse
from memoria.providers.embedding.mock import MockEmbeddingProvider
from memoria.providers.embedding.ollama import OllamaEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "EmbeddingResponse",
    "MockEmbeddingProvider",
    "OllamaEmbeddingProvider",
]
