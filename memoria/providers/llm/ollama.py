"""Ollama chat completion provider."""

from typing import Any

import httpx

from memoria.observability.logging import get_logger
from memoria.providers.http import resolve_ollama_url
from memoria.providers.llm.base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    MalformedOutputError,
    ProviderError,
    ProviderTimeoutError,
)

logger = get_logger(__name__)


class OllamaLLMProvider(LLMProvider):
    """LLM provider backed by an Ollama server's /api/chat (non-streaming)."""

    def __init__(
        self,
        model: str = "ministral-3:8b",
        temperature: float = 0.4,
        max_tokens: int | None = 512,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._base_url = resolve_ollama_url(base_url)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def provider_name(self) -> str:
        return "ollama"

    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        use_model = model or self._model
        options: dict[str, Any] = {
            "temperature": self._temperature if temperature is None else temperature,
        }
        num_predict = max_tokens or self._max_tokens
        if num_predict:
            options["num_predict"] = num_predict

        payload: dict[str, Any] = {
            "model": use_model,
            "messages": [m.model_dump() for m in messages],
            "stream": False,
            "options": options,
        }
        payload.update(kwargs)

        logger.debug(
            "ollama_chat_request",
            model=use_model,
            num_messages=len(messages),
        )

        try:
            response = await self._client.post(
                f"{self._base_url}/api/chat", json=payload
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Ollama chat timed out: {e}", provider="ollama", cause=e
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Ollama chat request failed: {e}", provider="ollama", cause=e
            ) from e

        if response.status_code != 200:
            logger.error(
                "ollama_chat_error",
                status_code=response.status_code,
                error=response.text[:200],
            )
            raise ProviderError(
                f"Ollama API error ({response.status_code})", provider="ollama"
            )

        try:
            data = response.json()
            content = data["message"]["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise MalformedOutputError(
                "Ollama chat response missing message content",
                provider="ollama",
                cause=e,
            ) from e
        if not isinstance(content, str):
            raise MalformedOutputError(
                "Ollama chat content is not text", provider="ollama"
            )

        usage = None
        if "prompt_eval_count" in data or "eval_count" in data:
            prompt_tokens = int(data.get("prompt_eval_count", 0))
            completion_tokens = int(data.get("eval_count", 0))
            usage = {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            }

        return LLMResponse(
            content=content,
            model=data.get("model", use_model),
            finish_reason=data.get("done_reason"),
            usage=usage,
            raw_response=data,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
