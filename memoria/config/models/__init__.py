"""Configuration models."""

from memoria.config.models.memory import (
    ExtractorConfig,
    MaintenanceConfig,
    MemoryConfig,
    PromptConfig,
    RetentionConfig,
    RetrievalConfig,
    ScoringConfig,
    ShortTermConfig,
    SummaryConfig,
)
from memoria.config.models.observability import ObservabilityConfig
from memoria.config.models.providers import EmbeddingConfig, LLMConfig
from memoria.config.models.storage import StorageConfig

__all__ = [
    "EmbeddingConfig",
    "ExtractorConfig",
    "LLMConfig",
    "MaintenanceConfig",
    "MemoryConfig",
    "ObservabilityConfig",
    "PromptConfig",
    "RetentionConfig",
    "RetrievalConfig",
    "ScoringConfig",
    "ShortTermConfig",
    "StorageConfig",
    "SummaryConfig",
]
