"""Provider factory for creating backend instances from configuration.

The Ollama server URL comes from the config or the MEMORIA_OLLAMA_URL
environment variable.
"""

from memoria.config.models.providers import EmbeddingConfig, LLMConfig
from memoria.errors import ConfigError
from memoria.observability.logging import get_logger
from memoria.providers.embedding import (
    EmbeddingProvider,
    MockEmbeddingProvider,
    OllamaEmbeddingProvider,
)
from memoria.providers.llm import LLMProvider, MockLLMProvider, OllamaLLMProvider

logger = get_logger(__name__)


def create_embedding_provider(config: EmbeddingConfig) -> EmbeddingProvider:
    """Create an EmbeddingProvider based on configuration.

    Raises:
        ConfigError: If the provider type is not supported
    """
    logger.info(
        "creating_embedding_provider",
        provider=config.provider,
        model=config.model,
        dimensions=config.ndims,
    )

    if config.provider == "mock":
        return MockEmbeddingProvider(dimensions=config.ndims, default_model=config.model)
    elif config.provider == "ollama":
        return OllamaEmbeddingProvider(
            model=config.model,
            dimensions=config.ndims,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )
    else:
        raise ConfigError(f"Unsupported embedding provider: {config.provider}")


def create_llm_provider(config: LLMConfig) -> LLMProvider:
    """Create an LLMProvider based on configuration.

    Raises:
        ConfigError: If the provider type is not supported
    """
    logger.info("creating_llm_provider", provider=config.provider, model=config.model)

    if config.provider == "mock":
        return MockLLMProvider(default_model=config.model)
    elif config.provider == "ollama":
        return OllamaLLMProvider(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )
    else:
        raise ConfigError(f"Unsupported LLM provider: {config.provider}")
