"""Rolling session summary model."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from memoria.memory.models.ids import SessionId


class SessionSummary(BaseModel):
    """The one rolling summary kept per session, overwritten in place."""

    model_config = ConfigDict(frozen=True)

    session_id: SessionId = Field(..., description="Owning session")
    text: str = Field(..., description="Summary text, bounded by summary.max_chars")
    turn_counter: int = Field(..., ge=0, description="Turn count at last regeneration")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last regeneration"
    )
