"""
Storage Module - Durable local state.

Everything persisted locally goes through a KeyValueStore:
- Snapshot of the in-progress session (crash recovery, 24h lifetime)
- Player profile (lifetime stats for solo players)
- Local leaderboard of finished games
- The sync queue's outbox (see truthhunt.sync)
"""

from .kv import KeyValueStore, MemoryStore, FileStore
from .snapshot import SnapshotStore, Snapshot, SavedGameSummary
from .profile import PlayerProfile
from .leaderboard import Leaderboard

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "SnapshotStore",
    "Snapshot",
    "SavedGameSummary",
    "PlayerProfile",
    "Leaderboard",
]
