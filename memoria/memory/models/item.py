"""Memory item models."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memoria.memory.models.ids import MemoryId, SessionId
from memoria.memory.models.kinds import MemoryKind, MemorySource
from memoria.memory.normalize import hash_content


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class MemoryDraft(BaseModel):
    """Candidate memory produced by an extractor, not yet admitted."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Candidate content, trimmed")
    kind: MemoryKind = Field(..., description="Semantic category")
    salience: float = Field(..., ge=0.0, le=1.0, description="Importance estimate")
    source: MemorySource = Field(..., description="Which extractor proposed it")

    @property
    def content_hash(self) -> str:
        return hash_content(self.content)


class MemoryItem(BaseModel):
    """A durable, embedded memory.

    Content is bounded (truncated before hashing), the content hash is
    unique among a session's live items, and the embedding dimension
    matches the configured backend.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: MemoryId = Field(default_factory=MemoryId.new, description="Unique identifier")
    session_id: SessionId = Field(..., description="Owning session")
    kind: MemoryKind = Field(..., description="Semantic category")
    content: str = Field(..., min_length=1, description="Memory content")
    content_hash: str = Field(..., description="Hash of normalized content")
    embedding: list[float] = Field(default_factory=list, description="Semantic vector")
    salience: float = Field(default=0.5, ge=0.0, le=1.0, description="Importance 0..1")
    source: MemorySource = Field(default=MemorySource.HEURISTIC, description="Origin")
    created_at: datetime = Field(default_factory=utc_now, description="When stored")
    last_accessed_at: datetime = Field(
        default_factory=utc_now, description="When last retrieved"
    )

    @field_validator("created_at", "last_accessed_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @classmethod
    def from_draft(
        cls,
        draft: MemoryDraft,
        session_id: SessionId,
        embedding: list[float],
        now: datetime | None = None,
    ) -> "MemoryItem":
        """Build a storable item from an admitted draft."""
        created = now or utc_now()
        return cls(
            session_id=session_id,
            kind=draft.kind,
            content=draft.content,
            content_hash=draft.content_hash,
            embedding=embedding,
            salience=draft.salience,
            source=draft.source,
            created_at=created,
            last_accessed_at=created,
        )

    def age_seconds(self, now: datetime) -> float:
        """Seconds since creation, never negative."""
        return max(0.0, (now - self.created_at).total_seconds())
