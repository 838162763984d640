"""Read-path components: ranking, expiry and query construction."""

from memoria.memory.retrieval.pruner import Pruner, SweepStats
from memoria.memory.retrieval.query import build_query_text
from memoria.memory.retrieval.ranker import Ranker, recency_decay

__all__ = ["Pruner", "Ranker", "SweepStats", "build_query_text", "recency_decay"]
