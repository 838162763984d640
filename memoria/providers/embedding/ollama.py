"""Ollama embedding provider."""

from typing import Any

import httpx

from memoria.observability.logging import get_logger
from memoria.providers.embedding.base import EmbeddingProvider, EmbeddingResponse
from memoria.providers.http import resolve_ollama_url
from memoria.providers.llm.base import (
    MalformedOutputError,
    ProviderError,
    ProviderTimeoutError,
)

logger = get_logger(__name__)


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embedding provider backed by an Ollama server's /api/embed."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        dimensions: int = 768,
        base_url: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize Ollama embedding provider.

        Args:
            model: Embedding model name
            dimensions: Expected vector dimensions
            base_url: Server URL (defaults to MEMORIA_OLLAMA_URL env var)
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (tests pass a MockTransport one)
        """
        self._model = model
        self._dimensions = dimensions
        self._base_url = resolve_ollama_url(base_url)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def provider_name(self) -> str:
        return "ollama"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(
        self,
        texts: list[str],
        *,
        model: str | None = None,
        **kwargs: Any,
    ) -> EmbeddingResponse:
        """Generate embeddings using the Ollama API.

        Raises:
            ProviderTimeoutError: If the request times out
            ProviderError: On transport failure or non-200 status
            MalformedOutputError: If the response body is not as expected
        """
        use_model = model or self._model
        payload: dict[str, Any] = {"model": use_model, "input": texts}
        payload.update(kwargs)

        logger.debug("ollama_embed_request", model=use_model, num_texts=len(texts))

        try:
            response = await self._client.post(
                f"{self._base_url}/api/embed", json=payload
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Ollama embed timed out: {e}", provider="ollama", cause=e
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Ollama embed request failed: {e}", provider="ollama", cause=e
            ) from e

        if response.status_code != 200:
            logger.error(
                "ollama_embed_error",
                status_code=response.status_code,
                error=response.text[:200],
            )
            raise ProviderError(
                f"Ollama API error ({response.status_code})", provider="ollama"
            )

        try:
            embeddings = [
                [float(x) for x in vector] for vector in response.json()["embeddings"]
            ]
        except (ValueError, KeyError, TypeError) as e:
            raise MalformedOutputError(
                "Ollama embed response missing 'embeddings'",
                provider="ollama",
                cause=e,
            ) from e

        if len(embeddings) != len(texts):
            raise MalformedOutputError(
                f"Expected {len(texts)} embeddings, got {len(embeddings)}",
                provider="ollama",
            )

        logger.debug(
            "ollama_embed_success",
            model=use_model,
            num_embeddings=len(embeddings),
            dimensions=len(embeddings[0]) if embeddings else 0,
        )

        return EmbeddingResponse(
            embeddings=embeddings,
            model=use_model,
            dimensions=self._dimensions,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
