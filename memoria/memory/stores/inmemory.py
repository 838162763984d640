"""In-memory store implementations for testing and development.

Dict storage with linear scans, each store guarded by its own
asyncio.Lock. Not suitable for production use.
"""

import asyncio
from collections import defaultdict
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
from memoria.memory.stores.base import SummaryStore, TranscriptStore, VectorStore
from memoria.utils.vector import cosine_similarities


class InMemoryTranscriptStore(TranscriptStore):
    """In-memory transcript log."""

    def __init__(self) -> None:
        self._events: dict[SessionId, list[TranscriptEvent]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def append(self, events: Sequence[TranscriptEvent]) -> None:
        async with self._lock:
            for event in events:
                self._events[event.session_id].append(event)

    def _ordered(self, session_id: SessionId) -> list[TranscriptEvent]:
        # sort is stable, so insertion order breaks timestamp ties
        return sorted(self._events.get(session_id, []), key=lambda e: e.timestamp)

    async def recent(self, session_id: SessionId, limit: int) -> list[TranscriptEvent]:
        if limit <= 0:
            return []
        async with self._lock:
            return self._ordered(session_id)[-limit:]

    async def events_since(
        self,
        session_id: SessionId,
        since: datetime | None,
        *,
        limit: int = 200,
    ) -> list[TranscriptEvent]:
        async with self._lock:
            events = self._ordered(session_id)
        if since is not None:
            events = [e for e in events if e.timestamp > since]
        return events[-limit:] if limit > 0 else []

    async def count_turns(self, session_id: SessionId) -> int:
        async with self._lock:
            return len({e.turn_id for e in self._events.get(session_id, [])})


class InMemorySummaryStore(SummaryStore):
    """In-memory rolling summaries."""

    def __init__(self) -> None:
        self._summaries: dict[SessionId, SessionSummary] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: SessionId) -> SessionSummary | None:
        async with self._lock:
            return self._summaries.get(session_id)

    async def upsert(self, summary: SessionSummary) -> None:
        async with self._lock:
            self._summaries[summary.session_id] = summary


class InMemoryVectorStore(VectorStore):
    """In-memory memory items with brute-force cosine search."""

    def __init__(self) -> None:
        self._items: dict[MemoryId, MemoryItem] = {}
        self._by_hash: dict[tuple[SessionId, str], MemoryId] = {}
        self._lock = asyncio.Lock()

    async def insert(self, item: MemoryItem) -> None:
        key = (item.session_id, item.content_hash)
        async with self._lock:
            previous = self._by_hash.get(key)
            if previous is not None:
                self._items.pop(previous, None)
            self._items[item.id] = item.model_copy(deep=True)
            self._by_hash[key] = item.id

    async def search(
        self,
        query_vector: list[float],
        *,
        session_id: SessionId | None,
        top_k: int,
        min_similarity: float,
    ) -> list[tuple[MemoryItem, float]]:
        async with self._lock:
            candidates = [
                item
                for item in self._items.values()
                if session_id is None or item.session_id == session_id
            ]
            candidates = [
                item for item in candidates if len(item.embedding) == len(query_vector)
            ]
            scores = cosine_similarities(
                query_vector, [item.embedding for item in candidates]
            )
            results = [
                (item.model_copy(deep=True), score)
                for item, score in zip(candidates, scores)
                if score >= min_similarity
            ]

        results.sort(key=lambda pair: pair[1], reverse=True)
        return results[:top_k]

    async def get_by_hash(
        self, session_id: SessionId, content_hash: str
    ) -> MemoryItem | None:
        async with self._lock:
            item_id = self._by_hash.get((session_id, content_hash))
            if item_id is None:
                return None
            return self._items[item_id].model_copy(deep=True)

    async def list_created_before(
        self,
        kind: MemoryKind,
        cutoff: datetime,
        *,
        limit: int = 1000,
    ) -> list[MemoryItem]:
        async with self._lock:
            matches = [
                item.model_copy(deep=True)
                for item in self._items.values()
                if item.kind == kind and item.created_at < cutoff
            ]
        matches.sort(key=lambda item: item.created_at)
        return matches[:limit]

    async def delete(self, ids: Sequence[MemoryId]) -> int:
        removed = 0
        async with self._lock:
            for item_id in ids:
                item = self._items.pop(item_id, None)
                if item is None:
                    continue
                self._by_hash.pop((item.session_id, item.content_hash), None)
                removed += 1
        return removed

    async def touch(self, ids: Sequence[MemoryId], accessed_at: datetime) -> None:
        async with self._lock:
            for item_id in ids:
                item = self._items.get(item_id)
                if item is not None:
                    item.last_accessed_at = accessed_at

    def __len__(self) -> int:
        return len(self._items)
