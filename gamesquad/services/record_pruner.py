"""
Background pruning of old watchlist records
"""
import asyncio
import logging

from .record_store import RecordStore, RecordStoreError
from .session import SessionCoordinator

logger = logging.getLogger(__name__)


class RecordPruner:
    """Periodically removes records older than max_age_days and announces each removal"""

    def __init__(self, store: RecordStore, coordinator: SessionCoordinator,
                 max_age_days: int = 30, interval: float = 3600):
        self.store = store
        self.coordinator = coordinator
        self.max_age_days = max_age_days
        self.interval = interval
        self.running = False
        self.worker_task = None

    async def start(self):
        """Start the background worker"""
        if self.interval <= 0:
            logger.info("[Pruner] Disabled")
            return
        self.running = True
        self.worker_task = asyncio.create_task(self._worker_loop())
        logger.info(f"[Pruner] Started: every {self.interval}s, max age {self.max_age_days} days")

    async def stop(self):
        """Stop the background worker"""
        self.running = False
        if self.worker_task:
            self.worker_task.cancel()
            try:
                await self.worker_task
            except asyncio.CancelledError:
                pass
            self.worker_task = None
        logger.info("[Pruner] Stopped")

    async def prune_once(self) -> int:
        """Run one prune pass. Returns the number of records removed."""
        removed = await self.store.prune_older_than(self.max_age_days)
        for record_id in removed:
            await self.coordinator.record_removed(record_id)
        return len(removed)

    async def _worker_loop(self):
        while self.running:
            try:
                await self.prune_once()
            except RecordStoreError as e:
                logger.error(f"[Pruner] Prune pass failed: {e}")
            await asyncio.sleep(self.interval)
