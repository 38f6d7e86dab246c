"""
Tests for the background record pruner.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

from gamesquad.services.record_pruner import RecordPruner
from gamesquad.services.record_store import RecordStoreError


def test_prune_once_announces_each_removal():
    store = MagicMock()
    store.prune_older_than = AsyncMock(return_value=[3, 5])
    coordinator = MagicMock()
    coordinator.record_removed = AsyncMock()

    pruner = RecordPruner(store, coordinator, max_age_days=30)
    removed = asyncio.run(pruner.prune_once())

    assert removed == 2
    store.prune_older_than.assert_awaited_once_with(30)
    assert [c.args for c in coordinator.record_removed.await_args_list] == [(3,), (5,)]


def test_failed_pass_announces_nothing_and_keeps_running():
    store = MagicMock()
    store.prune_older_than = AsyncMock(side_effect=RecordStoreError("disk full"))
    coordinator = MagicMock()
    coordinator.record_removed = AsyncMock()

    async def scenario():
        pruner = RecordPruner(store, coordinator, interval=0.01)
        await pruner.start()
        await asyncio.sleep(0.05)
        assert pruner.worker_task is not None and not pruner.worker_task.done()
        await pruner.stop()

    asyncio.run(scenario())
    assert store.prune_older_than.await_count >= 2
    coordinator.record_removed.assert_not_awaited()


def test_zero_interval_disables():
    pruner = RecordPruner(MagicMock(), MagicMock(), interval=0)

    async def scenario():
        await pruner.start()
        await pruner.stop()

    asyncio.run(scenario())
    assert pruner.worker_task is None
