"""Memory domain models."""

from memoria.memory.models.context import PreparedContext, RankedMemory, RecordedTurn
from memoria.memory.models.ids import MemoryId, SessionId, TurnId
from memoria.memory.models.item import MemoryDraft, MemoryItem, utc_now
from memoria.memory.models.kinds import MemoryKind, MemorySource
from memoria.memory.models.summary import SessionSummary
from memoria.memory.models.transcript import ToolEvent, TranscriptEvent, TranscriptRole

__all__ = [
    "MemoryDraft",
    "MemoryId",
    "MemoryItem",
    "MemoryKind",
    "MemorySource",
    "PreparedContext",
    "RankedMemory",
    "RecordedTurn",
    "SessionId",
    "SessionSummary",
    "ToolEvent",
    "TranscriptEvent",
    "TranscriptRole",
    "TurnId",
    "utc_now",
]
