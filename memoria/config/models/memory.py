"""Memory engine configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from memoria.config.models.providers import EmbeddingConfig, LLMConfig
from memoria.config.models.storage import StorageConfig
from memoria.memory.models.kinds import MemoryKind

ExtractorMode = Literal["heuristic", "heuristic_llm"]
RetrievalScope = Literal["session", "global"]


class ShortTermConfig(BaseModel):
    """Short-term context window and dedupe cache."""

    window: int = Field(
        default=6,
        gt=0,
        description="Most recent transcript events included verbatim",
    )
    cache_capacity: int = Field(
        default=256,
        gt=0,
        description="LRU capacity of the dedupe cache, shared by all sessions",
    )


class SummaryConfig(BaseModel):
    """Rolling summary regeneration."""

    interval_turns: int = Field(
        default=8,
        gt=0,
        description="Regenerate when turn_counter % interval_turns == 0",
    )
    max_chars: int = Field(default=1200, gt=0, description="Summary size cap")
    use_llm: bool = Field(
        default=True,
        description="Summarize with the language model; otherwise keep a rolling transcript tail",
    )


class RetrievalConfig(BaseModel):
    """Long-term memory retrieval."""

    top_k: int = Field(default=6, gt=0, description="Memories kept after ranking")
    min_similarity: float = Field(
        default=0.2,
        ge=-1.0,
        le=1.0,
        description="Similarity floor applied at search time",
    )
    scope: RetrievalScope = Field(
        default="session",
        description="Search only the caller's session or every session",
    )
    include_history_in_query: bool = Field(
        default=False,
        description="Embed the short-term window together with the user message",
    )
    touch_on_access: bool = Field(
        default=True,
        description="Update last_accessed_at on retrieved items",
    )


class ScoringConfig(BaseModel):
    """Ranking weights.

    score = similarity * (1 - alpha - beta) + recency * alpha + salience * beta
    """

    alpha_recency: float = Field(default=0.15, ge=0.0, le=1.0)
    beta_salience: float = Field(default=0.35, ge=0.0, le=1.0)
    recency_half_life_seconds: int = Field(
        default=60 * 60 * 24 * 7,
        gt=0,
        description="Age at which recency decay reaches 0.5",
    )

    @model_validator(mode="after")
    def check_weights(self) -> "ScoringConfig":
        if self.alpha_recency + self.beta_salience > 1.0:
            raise ValueError(
                "scoring.alpha_recency + scoring.beta_salience must be <= 1"
            )
        return self


class ExtractorConfig(BaseModel):
    """Candidate memory extraction."""

    mode: ExtractorMode = Field(
        default="heuristic",
        description="heuristic only, or heuristic plus periodic model-assisted pass",
    )
    llm_every_n_turns: int = Field(default=6, gt=0)
    llm_max_items: int = Field(default=6, gt=0)
    min_content_chars: int = Field(default=10, ge=0)


class PromptConfig(BaseModel):
    """Prompt assembly budget."""

    max_chars: int = Field(default=3600, gt=0, description="Hard cap on the prompt block")
    max_memory_chars: int = Field(
        default=1200,
        gt=0,
        description="Cap on a single memory item and on the summary slice",
    )


class RetentionConfig(BaseModel):
    """Per-kind time-to-live. Kinds absent from the table never expire."""

    ttl_seconds_by_kind: dict[MemoryKind, int] = Field(default_factory=dict)

    @field_validator("ttl_seconds_by_kind")
    @classmethod
    def check_positive(cls, value: dict[MemoryKind, int]) -> dict[MemoryKind, int]:
        for kind, ttl in value.items():
            if ttl <= 0:
                raise ValueError(f"ttl_seconds_by_kind for {kind.value} must be > 0")
        return value

    def ttl_for(self, kind: MemoryKind) -> int | None:
        return self.ttl_seconds_by_kind.get(kind)


class MaintenanceConfig(BaseModel):
    """Background TTL sweep."""

    enabled: bool = Field(default=False)
    interval_seconds: float = Field(default=3600.0, gt=0)


class MemoryConfig(BaseModel):
    """Complete memory engine configuration."""

    short_term: ShortTermConfig = Field(default_factory=ShortTermConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    prompt: PromptConfig = Field(default_factory=PromptConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    maintenance: MaintenanceConfig = Field(default_factory=MaintenanceConfig)
