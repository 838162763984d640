"""Store interfaces for the memory engine.

Each store owns its own synchronization, so calls for different
sessions never block each other. Implementations raise StorageError
when the backend is unreachable or rejects a write.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from memoria.memory.models import (
    MemoryId,
    MemoryItem,
    MemoryKind,
    SessionId,
    SessionSummary,
    TranscriptEvent,
)


class TranscriptStore(ABC):
    """Append-only conversation log."""

    @abstractmethod
    async def append(self, events: Sequence[TranscriptEvent]) -> None:
        """Persist events in order. Events are never mutated afterwards."""
        pass

    @abstractmethod
    async def recent(self, session_id: SessionId, limit: int) -> list[TranscriptEvent]:
        """Return the last ``limit`` events, oldest first."""
        pass

    @abstractmethod
    async def events_since(
        self,
        session_id: SessionId,
        since: datetime | None,
        *,
        limit: int = 200,
    ) -> list[TranscriptEvent]:
        """Return events strictly newer than ``since`` (all if None), oldest first.

        When more than ``limit`` events match, the most recent ones are kept.
        """
        pass

    @abstractmethod
    async def count_turns(self, session_id: SessionId) -> int:
        """Number of distinct turns recorded for the session."""
        pass


class SummaryStore(ABC):
    """One rolling summary per session, overwritten in place."""

    @abstractmethod
    async def get(self, session_id: SessionId) -> SessionSummary | None:
        pass

    @abstractmethod
    async def upsert(self, summary: SessionSummary) -> None:
        pass


class VectorStore(ABC):
    """Memory items and their embedding index."""

    @abstractmethod
    async def insert(self, item: MemoryItem) -> None:
        """Persist an item.

        An existing item of the same session with the same content hash
        is replaced, so a re-admitted expired item never collides with
        its stale predecessor.
        """
        pass

    @abstractmethod
    async def search(
        self,
        query_vector: list[float],
        *,
        session_id: SessionId | None,
        top_k: int,
        min_similarity: float,
    ) -> list[tuple[MemoryItem, float]]:
        """Return up to ``top_k`` items by descending cosine similarity.

        ``session_id=None`` searches across all sessions. Items below
        ``min_similarity`` are excluded.
        """
        pass

    @abstractmethod
    async def get_by_hash(
        self, session_id: SessionId, content_hash: str
    ) -> MemoryItem | None:
        """Return the session's item with this content hash, if any."""
        pass

    @abstractmethod
    async def list_created_before(
        self,
        kind: MemoryKind,
        cutoff: datetime,
        *,
        limit: int = 1000,
    ) -> list[MemoryItem]:
        """Return items of ``kind`` created strictly before ``cutoff``."""
        pass

    @abstractmethod
    async def delete(self, ids: Sequence[MemoryId]) -> int:
        """Delete items by id. Unknown ids are ignored. Returns rows removed."""
        pass

    @abstractmethod
    async def touch(self, ids: Sequence[MemoryId], accessed_at: datetime) -> None:
        """Update last_accessed_at for the given items."""
        pass
