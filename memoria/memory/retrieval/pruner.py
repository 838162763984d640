"""TTL expiry shared by the read path and the periodic sweep.

An item is expired when ``now - created_at > ttl_for(kind)``. Kinds
without a TTL never expire.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from memoria.config.models.memory import RetentionConfig
from memoria.memory.models import MemoryItem, MemoryKind
from memoria.memory.stores.base import VectorStore
from memoria.observability.logging import get_logger
from memoria.observability.metrics import EXPIRED_SWEPT

logger = get_logger(__name__)


@dataclass
class SweepStats:
    """Outcome of one sweep pass."""

    scanned: int = 0
    deleted: int = 0
    deleted_by_kind: dict[MemoryKind, int] = field(default_factory=dict)


class Pruner:
    """Decide expiry and delete expired items."""

    def __init__(self, retention: RetentionConfig, batch_size: int = 1000) -> None:
        self._retention = retention
        self._batch_size = batch_size

    def ttl_for(self, kind: MemoryKind) -> int | None:
        return self._retention.ttl_for(kind)

    def is_expired(self, item: MemoryItem, now: datetime) -> bool:
        ttl = self.ttl_for(item.kind)
        if ttl is None:
            return False
        return (now - item.created_at).total_seconds() > ttl

    def cutoff(self, kind: MemoryKind, now: datetime) -> datetime | None:
        """Items of ``kind`` created strictly before this instant are expired."""
        ttl = self.ttl_for(kind)
        if ttl is None:
            return None
        return now - timedelta(seconds=ttl)

    def filter_live(
        self,
        hits: Iterable[tuple[MemoryItem, float]],
        now: datetime,
    ) -> list[tuple[MemoryItem, float]]:
        """Drop expired items from search hits, preserving order."""
        return [(item, sim) for item, sim in hits if not self.is_expired(item, now)]

    async def sweep(self, store: VectorStore, now: datetime) -> SweepStats:
        """Delete every expired item, kind by kind.

        Raises:
            StorageError: If the store fails; items deleted so far stay deleted
        """
        stats = SweepStats()
        for kind in sorted(self._retention.ttl_seconds_by_kind, key=lambda k: k.value):
            cutoff = self.cutoff(kind, now)
            while True:
                batch = await store.list_created_before(
                    kind, cutoff, limit=self._batch_size
                )
                stats.scanned += len(batch)
                expired = [item.id for item in batch if self.is_expired(item, now)]
                removed = await store.delete(expired) if expired else 0
                if removed:
                    EXPIRED_SWEPT.labels(kind=kind.value).inc(removed)
                    stats.deleted += removed
                    stats.deleted_by_kind[kind] = (
                        stats.deleted_by_kind.get(kind, 0) + removed
                    )
                if len(batch) < self._batch_size or removed == 0:
                    break

        if stats.deleted:
            logger.info(
                "expired_memories_swept",
                deleted=stats.deleted,
                scanned=stats.scanned,
                by_kind={k.value: v for k, v in stats.deleted_by_kind.items()},
            )
        return stats
