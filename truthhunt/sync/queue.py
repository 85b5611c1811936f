"""
Sync Queue - Durable outbox of pending remote writes.

Each item is a typed write (game, reflection, claim, achievement) that
must reach the remote service. Items are persisted in a key-value store
and re-read on every mutation, so the stored queue is the single source
of truth.

Delivery is at-least-once with a bounded retry budget:
- success      -> item removed, counted in success
- failure      -> retries += 1
- retries >= 3 -> item dropped, counted in failed

There is no idempotency key. A write that partially succeeds remotely
and is then retried can be duplicated server-side.

Persisted wire shape:
    [{"id", "type", "data", "timestamp", "retries"}, ...]
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable
import json
import logging
import threading
import uuid

from ..config import QUEUE_KEY, QUEUE_MAX_RETRIES
from ..storage.kv import KeyValueStore
from ..timeutil import Clock, now_ms
from .remote import RemoteClient

logger = logging.getLogger(__name__)


class QueueItemType(str, Enum):
    """Kinds of durable remote writes."""
    GAME = "game"
    REFLECTION = "reflection"
    CLAIM = "claim"
    ACHIEVEMENT = "achievement"


@dataclass
class QueueItem:
    id: str
    type: str
    data: dict[str, Any]
    timestamp: int
    retries: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "data": self.data,
            "timestamp": self.timestamp,
            "retries": self.retries,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueueItem:
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            data=data.get("data") or {},
            timestamp=int(data.get("timestamp", 0)),
            retries=int(data.get("retries", 0)),
        )


@dataclass
class SyncResult:
    success: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.success + self.failed


Listener = Callable[[list[QueueItem]], None]
Notifier = Callable[[str, str], None]


def _plural(count: int) -> str:
    return "item" if count == 1 else "items"


def summarize_sync(result: SyncResult) -> tuple[str, str] | None:
    """
    User-facing (message, level) for a sync pass, or None if nothing happened.

    Levels: success, error, warning.
    """
    if result.total == 0:
        return None
    if result.failed == 0:
        return (
            f"Successfully synced {result.success} queued {_plural(result.success)}",
            "success",
        )
    if result.success == 0:
        return (
            f"Failed to sync {result.failed} queued {_plural(result.failed)}. Will retry later.",
            "error",
        )
    return (
        f"Synced {result.success} {_plural(result.success)}, {result.failed} failed",
        "warning",
    )


class SyncQueue:
    """
    Durable outbox.

    Usage:
        queue = SyncQueue(store)
        queue.enqueue(QueueItemType.GAME, record)

        # later, or on a network-recovered signal
        result = await queue.sync(remote)

    sync() is not reentrant: a second call while one is running returns
    an empty result immediately.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = QUEUE_KEY,
        clock: Clock = now_ms,
        max_retries: int = QUEUE_MAX_RETRIES,
    ):
        self.store = store
        self.key = key
        self.clock = clock
        self.max_retries = max_retries
        self._listeners: list[Listener] = []
        self._notifier: Notifier | None = None
        self._lock = threading.RLock()
        self._syncing = False

    # =========================================================================
    # Persistence
    # =========================================================================

    def get_queue(self) -> list[QueueItem]:
        """Read the persisted queue. Unreadable storage reads as empty."""
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning("Failed to read offline queue: %s", e)
            return []
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except ValueError as e:
            logger.warning("Offline queue unreadable: %s", e)
            return []
        if not isinstance(entries, list):
            return []

        items = []
        for entry in entries:
            try:
                items.append(QueueItem.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed queue entry: %s", e)
        return items

    def _save_queue(self, items: list[QueueItem]) -> bool:
        try:
            self.store.set(self.key, json.dumps([item.to_dict() for item in items]))
        except Exception as e:
            logger.warning("Failed to save offline queue: %s", e)
            return False
        self._notify(items)
        return True

    def _notify(self, items: list[QueueItem]):
        for listener in list(self._listeners):
            try:
                listener(list(items))
            except Exception:
                logger.exception("Queue listener failed")

    # =========================================================================
    # Mutations
    # =========================================================================

    def enqueue(self, item_type: QueueItemType | str, payload: dict[str, Any]) -> QueueItem:
        """Append a new item with zero retries and persist the queue."""
        item_type = QueueItemType(item_type)
        item = QueueItem(
            id=str(uuid.uuid4()),
            type=item_type.value,
            data=payload,
            timestamp=self.clock(),
            retries=0,
        )
        with self._lock:
            queue = self.get_queue()
            queue.append(item)
            self._save_queue(queue)
        logger.info("Queued %s for later sync", item.type)
        return item

    def dequeue(self, item_id: str):
        with self._lock:
            queue = self.get_queue()
            self._save_queue([item for item in queue if item.id != item_id])

    def clear(self):
        with self._lock:
            self._save_queue([])

    def _record_failure(self, item_id: str) -> bool:
        """
        Count a failed attempt for an item.

        Returns True if the item used up its retry budget and was dropped.
        """
        with self._lock:
            queue = self.get_queue()
            for item in queue:
                if item.id == item_id:
                    break
            else:
                return False

            item.retries += 1
            dropped = item.retries >= self.max_retries
            if dropped:
                queue = [i for i in queue if i.id != item_id]
            self._save_queue(queue)
            return dropped

    # =========================================================================
    # Read-only helpers
    # =========================================================================

    def items(self) -> list[QueueItem]:
        return self.get_queue()

    def size(self) -> int:
        return len(self.get_queue())

    def has_pending(self, item_type: QueueItemType | str | None = None) -> bool:
        queue = self.get_queue()
        if item_type is None:
            return len(queue) > 0
        item_type = QueueItemType(item_type).value
        return any(item.type == item_type for item in queue)

    def get_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self.get_queue():
            counts[item.type] = counts.get(item.type, 0) + 1
        return counts

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with the new queue after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_notifier(self, notifier: Notifier | None):
        """Receives (message, level) summaries after network-recovered syncs."""
        self._notifier = notifier

    # =========================================================================
    # Sync
    # =========================================================================

    @property
    def syncing(self) -> bool:
        return self._syncing

    async def sync(
        self,
        remote: RemoteClient | None,
        alive: Callable[[], bool] | None = None,
    ) -> SyncResult:
        """
        Push every queued item to the remote service.

        alive is checked before each side effect; once it returns False
        the pass stops and leaves the remaining items queued.
        """
        result = SyncResult()
        if remote is None or not remote.ready:
            return result
        if self._syncing:
            logger.info("Sync already in progress, skipping")
            return result

        self._syncing = True
        try:
            for item in self.get_queue():
                if alive is not None and not alive():
                    break
                try:
                    delivered = await self._deliver(remote, item)
                except Exception as e:
                    logger.warning("Failed to sync queued %s: %s", item.type, e)
                    delivered = False

                if alive is not None and not alive():
                    break

                if delivered:
                    self.dequeue(item.id)
                    result.success += 1
                    logger.info("Synced queued %s", item.type)
                elif self._record_failure(item.id):
                    result.failed += 1
                    logger.warning(
                        "Gave up on queued %s after %d retries", item.type, self.max_retries
                    )
        finally:
            self._syncing = False

        if result.total:
            logger.info("Sync pass: %d synced, %d failed", result.success, result.failed)
        return result

    async def handle_network_recovered(self, remote: RemoteClient | None) -> SyncResult:
        """Sync after connectivity returns and notify with a summary."""
        result = await self.sync(remote)
        summary = summarize_sync(result)
        if summary and self._notifier:
            self._notifier(*summary)
        return result

    async def _deliver(self, remote: RemoteClient, item: QueueItem) -> bool:
        handlers: dict[str, Callable[[RemoteClient, dict[str, Any]], Awaitable[bool]]] = {
            QueueItemType.GAME.value: self._deliver_game,
            QueueItemType.REFLECTION.value: self._deliver_reflection,
            QueueItemType.CLAIM.value: self._deliver_claim,
            QueueItemType.ACHIEVEMENT.value: self._deliver_achievement,
        }
        handler = handlers.get(item.type)
        if handler is None:
            logger.warning("Unknown queue item type: %s", item.type)
            return False
        return await handler(remote, item.data)

    @staticmethod
    async def _deliver_game(remote: RemoteClient, data: dict[str, Any]) -> bool:
        return bool(await remote.save_game_record(data))

    @staticmethod
    async def _deliver_reflection(remote: RemoteClient, data: dict[str, Any]) -> bool:
        return bool(await remote.save_reflection(data))

    @staticmethod
    async def _deliver_claim(remote: RemoteClient, data: dict[str, Any]) -> bool:
        result = await remote.submit_claim(data)
        return bool(result and result.success)

    @staticmethod
    async def _deliver_achievement(remote: RemoteClient, data: dict[str, Any]) -> bool:
        result = await remote.share_achievement(
            data.get("achievement") or {}, data.get("playerInfo") or {}
        )
        return bool(result and result.success)
