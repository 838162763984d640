"""Backend wiring for the memory engine.

Configuration comes from TOML (backend type, table names, pool sizing).
The PostgreSQL DSN comes from storage.dsn or the MEMORIA_DATABASE_URL /
DATABASE_URL environment variables.
"""

from dataclasses import dataclass

from memoria.config.models.memory import MemoryConfig
from memoria.db.pool import PostgresPool
from memoria.db.schema import ensure_schema
from memoria.errors import ConfigError
from memoria.memory.stores.base import SummaryStore, TranscriptStore, VectorStore
from memoria.memory.stores.inmemory import (
    InMemorySummaryStore,
    InMemoryTranscriptStore,
    InMemoryVectorStore,
)
from memoria.memory.stores.postgres import (
    PostgresSummaryStore,
    PostgresTranscriptStore,
    PostgresVectorStore,
)
from memoria.observability.logging import get_logger
from memoria.providers.embedding.base import EmbeddingProvider
from memoria.providers.factory import create_embedding_provider, create_llm_provider
from memoria.providers.llm.base import LLMProvider

logger = get_logger(__name__)


@dataclass
class MemoryBackends:
    """Stores and providers the engine talks to."""

    transcripts: TranscriptStore
    summaries: SummaryStore
    vectors: VectorStore
    embedder: EmbeddingProvider
    llm: LLMProvider
    pool: PostgresPool | None = None

    @classmethod
    def from_config(cls, config: MemoryConfig) -> "MemoryBackends":
        """Create stores and providers based on configuration.

        Raises:
            ConfigError: If the storage backend is not supported
        """
        embedder = create_embedding_provider(config.embedding)
        llm = create_llm_provider(config.llm)
        storage = config.storage

        if storage.backend == "inmemory":
            logger.info("creating_memory_stores", backend="inmemory")
            return cls(
                transcripts=InMemoryTranscriptStore(),
                summaries=InMemorySummaryStore(),
                vectors=InMemoryVectorStore(),
                embedder=embedder,
                llm=llm,
            )

        elif storage.backend == "postgres":
            pool = PostgresPool(
                dsn=storage.dsn,
                min_size=storage.min_pool_size,
                max_size=storage.max_pool_size,
                command_timeout=storage.command_timeout,
            )
            logger.info(
                "creating_memory_stores",
                backend="postgres",
                transcript_table=storage.transcript_table,
                summary_table=storage.summary_table,
                memory_table=storage.memory_table,
            )
            return cls(
                transcripts=PostgresTranscriptStore(pool, storage),
                summaries=PostgresSummaryStore(pool, storage),
                vectors=PostgresVectorStore(pool, storage),
                embedder=embedder,
                llm=llm,
                pool=pool,
            )

        else:
            raise ConfigError(f"Unsupported storage backend: {storage.backend}")

    async def start(self, config: MemoryConfig) -> None:
        """Connect the pool and create the schema, if a database is used."""
        if self.pool is None:
            return
        await self.pool.connect()
        await ensure_schema(self.pool, config.storage, config.embedding.ndims)

    async def close(self) -> None:
        """Release provider clients and the connection pool."""
        await self.embedder.close()
        await self.llm.close()
        if self.pool is not None:
            await self.pool.close()
