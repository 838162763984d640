"""PostgreSQL implementations of the memory stores.

Uses the shared asyncpg pool for async database access and pgvector for
vector similarity search. Table names come from StorageConfig, which
restricts them to plain identifiers.
"""

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import asyncpg

from memoria.config.models.storage import StorageConfig
from memoria.db.pool import PostgresPool
from memoria.errors import StorageError
from memoria.memory.models import (
    MemoryId,
    MemoryItem,
    MemoryKind,
    MemorySource,
    SessionId,
    SessionSummary,
    TranscriptEvent,
    TranscriptRole,
    TurnId,
)
from memoria.memory.stores.base import SummaryStore, TranscriptStore, VectorStore
from memoria.observability.logging import get_logger
from memoria.utils.vector import from_pgvector, to_pgvector

logger = get_logger(__name__)

_ITEM_COLUMNS = (
    "id, session_id, kind, content, content_hash, embedding::text AS embedding, "
    "salience, source, created_at, last_accessed_at"
)


class PostgresTranscriptStore(TranscriptStore):
    """Transcript events in one append-only table."""

    def __init__(self, pool: PostgresPool, config: StorageConfig | None = None) -> None:
        self._pool = pool
        self._table = (config or StorageConfig()).transcript_table

    async def append(self, events: Sequence[TranscriptEvent]) -> None:
        if not events:
            return
        rows = [
            (
                e.session_id.uuid,
                e.turn_id.uuid,
                e.role.value,
                e.content,
                e.tool_name,
                json.dumps(e.tool_payload) if e.tool_payload is not None else None,
                e.timestamp,
            )
            for e in events
        ]
        try:
            async with self._pool.acquire() as conn:
                await conn.executemany(
                    f"""
                    INSERT INTO {self._table} (
                        session_id, turn_id, role, content, tool_name, tool_payload, ts
                    ) VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7)
                    """,
                    rows,
                )
        except StorageError as e:
            logger.error(
                "postgres_transcript_append_error",
                session_id=str(events[0].session_id),
                error=str(e),
            )
            raise

    async def recent(self, session_id: SessionId, limit: int) -> list[TranscriptEvent]:
        if limit <= 0:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT session_id, turn_id, role, content, tool_name, tool_payload, ts
                FROM {self._table}
                WHERE session_id = $1
                ORDER BY ts DESC, seq DESC
                LIMIT $2
                """,
                session_id.uuid,
                limit,
            )
        return [self._row_to_event(row) for row in reversed(rows)]

    async def events_since(
        self,
        session_id: SessionId,
        since: datetime | None,
        *,
        limit: int = 200,
    ) -> list[TranscriptEvent]:
        if limit <= 0:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT session_id, turn_id, role, content, tool_name, tool_payload, ts
                FROM {self._table}
                WHERE session_id = $1 AND ($2::timestamptz IS NULL OR ts > $2)
                ORDER BY ts DESC, seq DESC
                LIMIT $3
                """,
                session_id.uuid,
                since,
                limit,
            )
        return [self._row_to_event(row) for row in reversed(rows)]

    async def count_turns(self, session_id: SessionId) -> int:
        async with self._pool.acquire() as conn:
            count = await conn.fetchval(
                f"SELECT COUNT(DISTINCT turn_id) FROM {self._table} WHERE session_id = $1",
                session_id.uuid,
            )
        return int(count or 0)

    @staticmethod
    def _row_to_event(row: asyncpg.Record) -> TranscriptEvent:
        payload = row["tool_payload"]
        if isinstance(payload, str):
            payload = json.loads(payload)
        return TranscriptEvent(
            turn_id=TurnId.parse(row["turn_id"]),
            session_id=SessionId.parse(row["session_id"]),
            role=TranscriptRole(row["role"]),
            content=row["content"],
            tool_name=row["tool_name"],
            tool_payload=payload,
            timestamp=row["ts"],
        )


class PostgresSummaryStore(SummaryStore):
    """Rolling summaries keyed by session."""

    def __init__(self, pool: PostgresPool, config: StorageConfig | None = None) -> None:
        self._pool = pool
        self._table = (config or StorageConfig()).summary_table

    async def get(self, session_id: SessionId) -> SessionSummary | None:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT session_id, summary, turn_counter, updated_at
                FROM {self._table}
                WHERE session_id = $1
                """,
                session_id.uuid,
            )
        if row is None:
            return None
        return SessionSummary(
            session_id=SessionId.parse(row["session_id"]),
            text=row["summary"],
            turn_counter=row["turn_counter"],
            updated_at=row["updated_at"],
        )

    async def upsert(self, summary: SessionSummary) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                f"""
                INSERT INTO {self._table} (session_id, summary, turn_counter, updated_at)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (session_id) DO UPDATE SET
                    summary = EXCLUDED.summary,
                    turn_counter = EXCLUDED.turn_counter,
                    updated_at = EXCLUDED.updated_at
                """,
                summary.session_id.uuid,
                summary.text,
                summary.turn_counter,
                summary.updated_at,
            )


class PostgresVectorStore(VectorStore):
    """Memory items with a pgvector cosine index."""

    def __init__(self, pool: PostgresPool, config: StorageConfig | None = None) -> None:
        self._pool = pool
        self._table = (config or StorageConfig()).memory_table

    async def insert(self, item: MemoryItem) -> None:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO {self._table} (
                        id, session_id, kind, content, content_hash, embedding,
                        salience, source, created_at, last_accessed_at
                    ) VALUES ($1, $2, $3, $4, $5, $6::vector, $7, $8, $9, $10)
                    ON CONFLICT (session_id, content_hash) DO UPDATE SET
                        id = EXCLUDED.id,
                        kind = EXCLUDED.kind,
                        content = EXCLUDED.content,
                        embedding = EXCLUDED.embedding,
                        salience = EXCLUDED.salience,
                        source = EXCLUDED.source,
                        created_at = EXCLUDED.created_at,
                        last_accessed_at = EXCLUDED.last_accessed_at
                    """,
                    item.id.uuid,
                    item.session_id.uuid,
                    item.kind.value,
                    item.content,
                    item.content_hash,
                    to_pgvector(item.embedding),
                    item.salience,
                    item.source.value,
                    item.created_at,
                    item.last_accessed_at,
                )
            logger.debug("memory_item_inserted", memory_id=str(item.id))
        except StorageError as e:
            logger.error(
                "postgres_memory_insert_error", memory_id=str(item.id), error=str(e)
            )
            raise

    async def search(
        self,
        query_vector: list[float],
        *,
        session_id: SessionId | None,
        top_k: int,
        min_similarity: float,
    ) -> list[tuple[MemoryItem, float]]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_ITEM_COLUMNS},
                       1 - (embedding <=> $1::vector) AS similarity
                FROM {self._table}
                WHERE ($2::uuid IS NULL OR session_id = $2)
                  AND 1 - (embedding <=> $1::vector) >= $3
                ORDER BY embedding <=> $1::vector
                LIMIT $4
                """,
                to_pgvector(query_vector),
                session_id.uuid if session_id is not None else None,
                min_similarity,
                top_k,
            )
        return [(self._row_to_item(row), float(row["similarity"])) for row in rows]

    async def get_by_hash(
        self, session_id: SessionId, content_hash: str
    ) -> MemoryItem | None:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_ITEM_COLUMNS}
                FROM {self._table}
                WHERE session_id = $1 AND content_hash = $2
                """,
                session_id.uuid,
                content_hash,
            )
        return self._row_to_item(row) if row is not None else None

    async def list_created_before(
        self,
        kind: MemoryKind,
        cutoff: datetime,
        *,
        limit: int = 1000,
    ) -> list[MemoryItem]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_ITEM_COLUMNS}
                FROM {self._table}
                WHERE kind = $1 AND created_at < $2
                ORDER BY created_at
                LIMIT $3
                """,
                kind.value,
                cutoff,
                limit,
            )
        return [self._row_to_item(row) for row in rows]

    async def delete(self, ids: Sequence[MemoryId]) -> int:
        if not ids:
            return 0
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                f"DELETE FROM {self._table} WHERE id = ANY($1::uuid[])",
                [i.uuid for i in ids],
            )
        # asyncpg returns the command tag, e.g. "DELETE 3"
        return int(result.split()[-1])

    async def touch(self, ids: Sequence[MemoryId], accessed_at: datetime) -> None:
        if not ids:
            return
        async with self._pool.acquire() as conn:
            await conn.execute(
                f"""
                UPDATE {self._table}
                SET last_accessed_at = $2
                WHERE id = ANY($1::uuid[])
                """,
                [i.uuid for i in ids],
                accessed_at,
            )

    @staticmethod
    def _row_to_item(row: asyncpg.Record | dict[str, Any]) -> MemoryItem:
        return MemoryItem(
            id=MemoryId.parse(row["id"]),
            session_id=SessionId.parse(row["session_id"]),
            kind=MemoryKind.parse(row["kind"]),
            content=row["content"],
            content_hash=row["content_hash"],
            embedding=from_pgvector(row["embedding"]) or [],
            salience=float(row["salience"]),
            source=MemorySource(row["source"]),
            created_at=row["created_at"],
            last_accessed_at=row["last_accessed_at"],
        )
