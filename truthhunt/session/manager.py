"""
Session Manager - Hosts many quiz sessions in one process.

LIFECYCLE:
1. Client creates a session -> fresh GameSession in setup
2. Client starts the game, submits rounds, resets as it likes
3. Every round advance is snapshotted under a per-session key, so a
   restarted server can restore_session() the same id
4. Client ends the session -> GameSession torn down, removed

SHARED PER PROCESS:
- one key-value store
- one sync queue (the device/server outbox)
- one player profile store
- one local leaderboard
- one remote client
- one background dispatcher
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import time
import uuid

from ..config import SNAPSHOT_KEY
from ..engine_core.machine import GameSession, StreakCue
from ..storage.kv import KeyValueStore, MemoryStore
from ..storage.leaderboard import Leaderboard
from ..storage.profile import PlayerProfile
from ..storage.snapshot import SnapshotStore
from ..sync.dispatch import Dispatcher, ThreadedDispatcher
from ..sync.live import LiveProgressPublisher
from ..sync.queue import SyncQueue, SyncResult
from ..sync.remote import RemoteClient
from ..timeutil import Clock, now_ms

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a hosted session."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass
class HostedSession:
    """A GameSession plus the bookkeeping the manager needs."""
    session_id: str
    game: GameSession
    created_at: float
    state: SessionState = SessionState.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE


def snapshot_key(session_id: str) -> str:
    return f"{SNAPSHOT_KEY}:{session_id}"


class SessionManager:
    """
    Creates, tracks and ends hosted sessions.

    Usage:
        manager = SessionManager(store=FileStore(data_dir), remote=remote)
        hosted = manager.create_session()
        hosted.game.start_game(settings)
        ...
        await manager.sync_queue()
        manager.end_session(hosted.session_id)
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        remote: RemoteClient | None = None,
        dispatcher: Dispatcher | None = None,
        clock: Clock = now_ms,
    ):
        self.store = store or MemoryStore()
        self.remote = remote
        self.clock = clock
        self.dispatcher = dispatcher or ThreadedDispatcher()
        self.queue = SyncQueue(self.store, clock=clock)
        self.profile = PlayerProfile(self.store, clock=clock)
        self.leaderboard = Leaderboard(self.store, clock=clock)
        self._sessions: dict[str, HostedSession] = {}

    def create_session(
        self,
        session_id: str | None = None,
        on_streak_cue: StreakCue | None = None,
    ) -> HostedSession:
        """
        Create a new session in setup.

        An id that is already hosted returns the existing session.
        """
        session_id = session_id or str(uuid.uuid4())
        existing = self._sessions.get(session_id)
        if existing is not None:
            return existing

        game = GameSession(
            snapshots=SnapshotStore(self.store, key=snapshot_key(session_id), clock=self.clock),
            queue=self.queue,
            dispatcher=self.dispatcher,
            live=LiveProgressPublisher(self.remote),
            profile=self.profile,
            leaderboard=self.leaderboard,
            clock=self.clock,
            on_streak_cue=on_streak_cue,
            session_id=session_id,
        )
        hosted = HostedSession(session_id=session_id, game=game, created_at=time.time())
        self._sessions[session_id] = hosted
        logger.info("Created session %s", session_id)
        return hosted

    def restore_session(self, session_id: str) -> HostedSession | None:
        """
        Host a session again from its saved snapshot.

        Returns None (and hosts nothing) if there is no resumable snapshot.
        """
        hosted = self._sessions.get(session_id)
        if hosted is not None:
            return hosted

        hosted = self.create_session(session_id)
        if hosted.game.resume_saved_game():
            return hosted

        self._sessions.pop(session_id, None)
        hosted.game.teardown()
        return None

    def get_session(self, session_id: str) -> HostedSession | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and tear down its state machine.

        Any saved snapshot stays in the store, so the game can still be
        restored later. Queued remote writes are unaffected.
        """
        hosted = self._sessions.pop(session_id, None)
        if hosted is None:
            return False
        hosted.state = (
            SessionState.COMPLETED if reason == "completed" else SessionState.ABANDONED
        )
        hosted.game.teardown()
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        return [sid for sid, hosted in self._sessions.items() if hosted.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """End sessions older than max_age_seconds. Returns how many were ended."""
        current_time = time.time()
        stale = [
            sid for sid, hosted in self._sessions.items()
            if current_time - hosted.created_at > max_age_seconds
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)

    async def sync_queue(self) -> SyncResult:
        """Flush the shared outbox to the remote service."""
        return await self.queue.sync(self.remote)

    async def network_recovered(self) -> SyncResult:
        return await self.queue.handle_network_recovered(self.remote)

    def close(self, timeout: float | None = 1.0):
        """End every session and stop the dispatcher."""
        for session_id in list(self._sessions):
            self.end_session(session_id, reason="shutdown")
        self.dispatcher.close(timeout)
