"""Mock embedding provider for testing."""

import asyncio
import hashlib
import math
import re
from typing import Any

from memoria.memory.normalize import normalize_text
from memoria.providers.embedding.base import EmbeddingProvider, EmbeddingResponse

_TOKEN = re.compile(r"\w+")


class MockEmbeddingProvider(EmbeddingProvider):
    """Mock embedding provider for testing.

    Generates deterministic embeddings without network calls. Vectors are
    built by feature hashing words and their character trigrams, so texts
    sharing words or word stems ("theme", "themes") land close together.
    """

    def __init__(
        self,
        dimensions: int = 768,
        default_model: str = "mock-embedding",
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        """Initialize mock provider.

        Args:
            dimensions: Embedding vector dimensions
            default_model: Model name to report
            delay: Seconds to sleep per call, for timeout tests
            error: Exception raised on every call, for failure tests
        """
        self._dimensions = dimensions
        self._default_model = default_model
        self.delay = delay
        self.error = error
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def clear_history(self) -> None:
        self._call_history.clear()

    def _features(self, text: str) -> list[str]:
        features: list[str] = []
        for token in _TOKEN.findall(normalize_text(text)):
            features.append(f"w:{token}")
            padded = f"#{token}#"
            features.extend(
                f"g:{padded[i:i + 3]}" for i in range(len(padded) - 2)
            )
        return features

    def _generate_embedding(self, text: str) -> list[float]:
        vector = [0.0] * self._dimensions
        for feature in self._features(text):
            digest = hashlib.sha256(feature.encode("utf-8")).digest()
            index = int.from_bytes(digest[:8], "big") % self._dimensions
            vector[index] += 1.0

        magnitude = math.sqrt(sum(x * x for x in vector))
        if magnitude > 0:
            vector = [x / magnitude for x in vector]
        return vector

    async def embed(
        self,
        texts: list[str],
        *,
        model: str | None = None,
        **kwargs: Any,
    ) -> EmbeddingResponse:
        """Generate mock embeddings."""
        self._call_history.append({
            "texts": texts,
            "model": model or self._default_model,
            "kwargs": kwargs,
        })

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        return EmbeddingResponse(
            embeddings=[self._generate_embedding(text) for text in texts],
            model=model or self._default_model,
            dimensions=self._dimensions,
        )
