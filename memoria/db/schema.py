"""DDL for the durable memory store.

Four logical collections: transcript events, one rolling summary per
session, memory items, and the pgvector index over their embeddings.
Statements are idempotent so ``ensure_schema`` can run on every start.
"""

from memoria.config.models.storage import StorageConfig
from memoria.db.pool import PostgresPool
from memoria.observability.logging import get_logger

logger = get_logger(__name__)


def schema_statements(config: StorageConfig, ndims: int) -> list[str]:
    """Return the CREATE statements for the configured table names."""
    transcript = config.transcript_table
    summary = config.summary_table
    items = config.memory_table

    return [
        "CREATE EXTENSION IF NOT EXISTS vector",
        f"""
        CREATE TABLE IF NOT EXISTS {transcript} (
            seq BIGSERIAL PRIMARY KEY,
            session_id UUID NOT NULL,
            turn_id UUID NOT NULL,
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            tool_name TEXT,
            tool_payload JSONB,
            ts TIMESTAMPTZ NOT NULL
        )
        """,
        f"""
        CREATE INDEX IF NOT EXISTS {transcript}_session_ts_idx
            ON {transcript} (session_id, ts, seq)
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {summary} (
            session_id UUID PRIMARY KEY,
            summary TEXT NOT NULL,
            turn_counter BIGINT NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {items} (
            id UUID PRIMARY KEY,
            session_id UUID NOT NULL,
            kind TEXT NOT NULL,
            content TEXT NOT NULL,
            content_hash TEXT NOT NULL,
            embedding vector({ndims}) NOT NULL,
            salience REAL NOT NULL,
            source TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL,
            last_accessed_at TIMESTAMPTZ NOT NULL
        )
        """,
        f"""
        CREATE UNIQUE INDEX IF NOT EXISTS {items}_session_hash_idx
            ON {items} (session_id, content_hash)
        """,
        f"""
        CREATE INDEX IF NOT EXISTS {items}_kind_created_idx
            ON {items} (kind, created_at)
        """,
        f"""
        CREATE INDEX IF NOT EXISTS {items}_embedding_idx
            ON {items} USING hnsw (embedding vector_cosine_ops)
        """,
    ]


async def ensure_schema(pool: PostgresPool, config: StorageConfig, ndims: int) -> None:
    """Create tables and indexes if they do not exist yet."""
    async with pool.acquire() as conn:
        async with conn.transaction():
            for statement in schema_statements(config, ndims):
                await conn.execute(statement)

    logger.info(
        "schema_ensured",
        transcript_table=config.transcript_table,
        summary_table=config.summary_table,
        memory_table=config.memory_table,
        ndims=ndims,
    )
