"""Embedding and language-model backend configuration."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

ProviderBackend = Literal["ollama", "mock"]


def check_base_url(value: str | None) -> str | None:
    """Require an http(s) URL and strip any trailing slash."""
    if value is None:
        return value
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"base_url must be an http(s) URL, got {value!r}")
    return value.rstrip("/")


class EmbeddingConfig(BaseModel):
    """Embedding backend configuration."""

    provider: ProviderBackend = Field(default="ollama", description="Backend type")
    model: str = Field(default="nomic-embed-text", description="Embedding model name")
    ndims: int = Field(default=768, gt=0, description="Vector dimensions")
    base_url: str | None = Field(
        default=None,
        description="Backend URL (falls back to MEMORIA_OLLAMA_URL)",
    )
    timeout_seconds: float = Field(default=10.0, gt=0, description="Request timeout")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str | None) -> str | None:
        return check_base_url(value)


class LLMConfig(BaseModel):
    """Language-model backend configuration."""

    provider: ProviderBackend = Field(default="ollama", description="Backend type")
    model: str = Field(default="ministral-3:8b", description="Completion model name")
    temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    max_tokens: int | None = Field(
        default=512,
        gt=0,
        description="Generation budget per call",
    )
    base_url: str | None = Field(
        default=None,
        description="Backend URL (falls back to MEMORIA_OLLAMA_URL)",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="Request timeout")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str | None) -> str | None:
        return check_base_url(value)
