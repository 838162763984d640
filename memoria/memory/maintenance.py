"""Background TTL sweep.

Periodically deletes expired memory items so storage does not grow
without bound. The read path already hides expired items, so a missed
or failed sweep never changes what the model sees.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime

from memoria.errors import StorageError
from memoria.memory.models import utc_now
from memoria.memory.retrieval.pruner import Pruner, SweepStats
from memoria.memory.stores.base import VectorStore
from memoria.observability.logging import get_logger
from memoria.observability.metrics import DEGRADATIONS

logger = get_logger(__name__)


class MemoryMaintenance:
    """Runs the pruner's sweep on a fixed interval."""

    def __init__(
        self,
        pruner: Pruner,
        store: VectorStore,
        interval_seconds: float = 3600.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._pruner = pruner
        self._store = store
        self._interval_seconds = interval_seconds
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._running:
            logger.warning("maintenance_already_running")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("maintenance_started", interval_seconds=self._interval_seconds)

    async def stop(self) -> None:
        """Stop the sweep loop and wait for it to exit."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("maintenance_stopped")

    async def run_once(self) -> SweepStats:
        """Sweep once.

        Raises:
            StorageError: If the store fails mid-sweep
        """
        return await self._pruner.sweep(self._store, self._clock())

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except StorageError as e:
                DEGRADATIONS.labels(step="ttl_sweep").inc()
                logger.warning("ttl_sweep_failed", error=str(e))
            await asyncio.sleep(self._interval_seconds)
