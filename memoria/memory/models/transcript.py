"""Transcript event models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from memoria.memory.models.ids import SessionId, TurnId


class TranscriptRole(str, Enum):
    """Who produced a transcript event."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    SYSTEM = "system"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class TranscriptEvent(BaseModel):
    """One immutable line of the conversation log.

    Events are ordered by timestamp, then by insertion.
    """

    model_config = ConfigDict(frozen=True)

    turn_id: TurnId = Field(..., description="Turn this event belongs to")
    session_id: SessionId = Field(..., description="Owning session")
    role: TranscriptRole = Field(..., description="Speaker")
    content: str = Field(..., description="Event text")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When it happened"
    )
    tool_name: str | None = Field(default=None, description="Tool name for tool events")
    tool_payload: dict[str, Any] | None = Field(
        default=None, description="Structured tool output"
    )


class ToolEvent(BaseModel):
    """Tool output supplied by the caller alongside a turn."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Human-readable tool output")
    tool_name: str | None = Field(default=None, description="Tool that ran")
    payload: dict[str, Any] | None = Field(default=None, description="Raw tool output")
