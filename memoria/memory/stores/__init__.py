"""Transcript, summary and vector stores."""

from memoria.memory.stores.base import SummaryStore, TranscriptStore, VectorStore
from memoria.memory.stores.factory import MemoryBackends
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

__all__ = [
    "InMemorySummaryStore",
    "InMemoryTranscriptStore",
    "InMemoryVectorStore",
    "MemoryBackends",
    "PostgresSummaryStore",
    "PostgresTranscriptStore",
    "PostgresVectorStore",
    "SummaryStore",
    "TranscriptStore",
    "VectorStore",
]
