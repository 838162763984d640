"""Transient results of the engine's read and write paths."""

from pydantic import BaseModel, ConfigDict, Field

from memoria.memory.models.ids import TurnId
from memoria.memory.models.item import MemoryItem
from memoria.memory.models.transcript import TranscriptEvent


class RankedMemory(BaseModel):
    """A retrieved item with its score breakdown.

    Lives only for the duration of one prepare_context call.
    """

    model_config = ConfigDict(frozen=True)

    item: MemoryItem
    similarity: float
    recency_decay: float
    salience: float
    score: float


class PreparedContext(BaseModel):
    """Everything injected into the model prompt for one turn."""

    model_config = ConfigDict(frozen=True)

    summary: str | None = Field(default=None, description="Rolling summary, possibly truncated")
    memories: list[RankedMemory] = Field(default_factory=list, description="Ranked, best first")
    short_term: list[TranscriptEvent] = Field(
        default_factory=list, description="Recent events, chronological"
    )
    user_message: str = Field(..., description="Current user message")
    prompt: str = Field(..., description="Formatted prompt block")
    degraded: list[str] = Field(
        default_factory=list, description="Enrichment steps that failed and were skipped"
    )


class RecordedTurn(BaseModel):
    """Outcome of record_turn."""

    model_config = ConfigDict(frozen=True)

    turn_id: TurnId
    turn_counter: int = Field(..., description="Turns stored for the session, this one included")
    events: list[TranscriptEvent] = Field(default_factory=list)
    stored: list[MemoryItem] = Field(default_factory=list, description="New memory items")
    suppressed: int = Field(default=0, description="Drafts rejected as duplicates")
    rejected: int = Field(default=0, description="Drafts dropped by validation")
    summary_updated: bool = False
    degraded: list[str] = Field(default_factory=list)
