"""
Sync Module - Getting local results to the remote service.

Two operation categories, kept apart:
- durable:     SyncQueue, at-least-once with a bounded retry budget
- best-effort: LiveProgressPublisher, attempted once (bounded cleanup)

Both depend only on the RemoteClient contract.
"""

from .remote import RemoteClient, RemoteResult, InMemoryRemoteClient
from .queue import QueueItem, QueueItemType, SyncQueue, SyncResult, summarize_sync
from .live import LiveProgress, LiveProgressPublisher
from .dispatch import Dispatcher, InlineDispatcher, ThreadedDispatcher

__all__ = [
    "RemoteClient",
    "RemoteResult",
    "InMemoryRemoteClient",
    "QueueItem",
    "QueueItemType",
    "SyncQueue",
    "SyncResult",
    "summarize_sync",
    "LiveProgress",
    "LiveProgressPublisher",
    "Dispatcher",
    "InlineDispatcher",
    "ThreadedDispatcher",
]
