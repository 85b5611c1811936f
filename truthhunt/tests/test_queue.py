"""
Tests for the durable sync queue.

Tests:
- Persistence shape and helpers
- Success and bounded-retry failure paths
- Non-reentrant sync and the alive guard
- Notifications
"""

import asyncio
import json

import pytest

from ..config import QUEUE_KEY
from ..sync.queue import QueueItemType, SyncQueue, SyncResult, summarize_sync
from ..sync.remote import InMemoryRemoteClient


class TestEnqueue:
    """Tests for queue mutations."""

    def test_enqueue_persists_wire_shape(self, queue, store, clock):
        item = queue.enqueue(QueueItemType.GAME, {"score": 12})

        stored = json.loads(store.get(QUEUE_KEY))
        assert stored == [{
            "id": item.id,
            "type": "game",
            "data": {"score": 12},
            "timestamp": clock(),
            "retries": 0,
        }]

    def test_ids_are_unique(self, queue):
        first = queue.enqueue("reflection", {})
        second = queue.enqueue("reflection", {})
        assert first.id != second.id

    def test_unknown_type_rejected(self, queue):
        with pytest.raises(ValueError):
            queue.enqueue("telemetry", {})

    def test_dequeue_and_clear(self, queue):
        keep = queue.enqueue("game", {})
        drop = queue.enqueue("claim", {})

        queue.dequeue(drop.id)
        assert [i.id for i in queue.items()] == [keep.id]

        queue.clear()
        assert queue.size() == 0

    def test_counts_and_pending(self, queue):
        queue.enqueue("game", {})
        queue.enqueue("game", {})
        queue.enqueue("achievement", {})

        assert queue.get_counts() == {"game": 2, "achievement": 1}
        assert queue.has_pending() is True
        assert queue.has_pending("achievement") is True
        assert queue.has_pending(QueueItemType.CLAIM) is False

    def test_unreadable_queue_reads_empty(self, queue, store):
        store.set(QUEUE_KEY, "garbage")
        assert queue.items() == []

    def test_storage_unavailable_reads_empty(self, queue, store):
        queue.enqueue("game", {})
        store.available = False
        assert queue.size() == 0

    def test_subscribers_see_every_change(self, queue):
        seen = []
        unsubscribe = queue.subscribe(lambda items: seen.append(len(items)))

        item = queue.enqueue("game", {})
        queue.dequeue(item.id)
        unsubscribe()
        queue.enqueue("game", {})

        assert seen == [1, 0]


class TestSync:
    """Tests for sync passes."""

    def test_success_empties_queue(self, queue, remote):
        queue.enqueue("game", {"score": 5})

        result = asyncio.run(queue.sync(remote))

        assert result.success == 1
        assert result.failed == 0
        assert queue.size() == 0
        assert remote.game_records == [{"score": 5}]

    def test_each_type_reaches_its_operation(self, queue, remote):
        queue.enqueue("game", {"score": 1})
        queue.enqueue("reflection", {"reflectionResponse": "ok"})
        queue.enqueue("claim", {"claimText": "Cats can see in total darkness"})
        queue.enqueue("achievement", {
            "achievement": {"id": "streak-3"},
            "playerInfo": {"playerName": "Ada"},
        })

        result = asyncio.run(queue.sync(remote))

        assert result.success == 4
        assert len(remote.game_records) == 1
        assert len(remote.reflections) == 1
        assert len(remote.claims) == 1
        assert remote.achievements == [{
            "achievement": {"id": "streak-3"},
            "playerInfo": {"playerName": "Ada"},
        }]

    def test_always_failing_item_dropped_after_three_passes(self, queue, remote):
        remote.fail_writes = True
        queue.enqueue("game", {})

        first = asyncio.run(queue.sync(remote))
        second = asyncio.run(queue.sync(remote))
        assert (first.failed, second.failed) == (0, 0)
        assert queue.items()[0].retries == 2

        third = asyncio.run(queue.sync(remote))
        assert third.failed == 1
        assert third.success == 0
        assert queue.size() == 0

    def test_exceptions_count_as_failures(self, queue, remote):
        remote.raise_writes = True
        queue.enqueue("claim", {})

        result = asyncio.run(queue.sync(remote))

        assert result.total == 0
        assert queue.items()[0].retries == 1

    def test_unreachable_remote_keeps_items(self, queue, remote):
        remote.online = False
        queue.enqueue("game", {})

        asyncio.run(queue.sync(remote))

        assert queue.size() == 1

    def test_not_ready_remote_is_a_no_op(self, queue):
        client = InMemoryRemoteClient()
        queue.enqueue("game", {})

        result = asyncio.run(queue.sync(client))

        assert result.total == 0
        assert client.calls == []
        assert queue.items()[0].retries == 0

    def test_missing_remote_is_a_no_op(self, queue):
        queue.enqueue("game", {})
        assert asyncio.run(queue.sync(None)).total == 0

    def test_alive_guard_stops_the_pass(self, queue, remote):
        queue.enqueue("game", {})
        queue.enqueue("game", {})

        result = asyncio.run(queue.sync(remote, alive=lambda: False))

        assert result.total == 0
        assert remote.calls == []
        assert queue.size() == 2

    def test_second_concurrent_sync_is_skipped(self, store, clock):
        class SlowRemote(InMemoryRemoteClient):
            async def save_game_record(self, record):
                await asyncio.sleep(0)
                return await super().save_game_record(record)

        remote = SlowRemote()
        queue = SyncQueue(store, clock=clock)
        queue.enqueue("game", {})

        async def run_both():
            await remote.init()
            return await asyncio.gather(queue.sync(remote), queue.sync(remote))

        first, second = asyncio.run(run_both())

        assert first.success == 1
        assert second.total == 0
        assert len(remote.game_records) == 1


class TestNotifications:
    """Tests for sync summaries."""

    def test_summaries(self):
        assert summarize_sync(SyncResult()) is None
        assert summarize_sync(SyncResult(success=1)) == (
            "Successfully synced 1 queued item", "success",
        )
        assert summarize_sync(SyncResult(failed=2)) == (
            "Failed to sync 2 queued items. Will retry later.", "error",
        )
        assert summarize_sync(SyncResult(success=2, failed=1)) == (
            "Synced 2 items, 1 failed", "warning",
        )

    def test_network_recovered_notifies(self, queue, remote):
        messages = []
        queue.set_notifier(lambda message, level: messages.append((message, level)))
        queue.enqueue("game", {})

        asyncio.run(queue.handle_network_recovered(remote))

        assert messages == [("Successfully synced 1 queued item", "success")]

    def test_no_notification_when_nothing_synced(self, queue, remote):
        messages = []
        queue.set_notifier(lambda message, level: messages.append(message))

        asyncio.run(queue.handle_network_recovered(remote))

        assert messages == []
