"""
Remote Service - The call contract for the remote scoring service.

The engine depends only on RemoteClient, never on a transport. One
client instance is shared per process, injected where it is needed,
and has an explicit init()/teardown() lifecycle.

Implementations:
- InMemoryRemoteClient: records writes in memory; used by tests, the
  CLI and single-process deployments
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..errors import RemoteUnreachable, RemoteWriteFailure


@dataclass
class RemoteResult:
    """Outcome of a remote call that reports success explicitly."""
    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> RemoteResult:
        return cls(success=True)

    @classmethod
    def failure(cls, error: str) -> RemoteResult:
        return cls(success=False, error=error)


class RemoteClient(ABC):
    """
    Abstract remote service client.

    Write methods may raise; callers treat an exception the same as a
    falsy result.
    """

    @property
    @abstractmethod
    def ready(self) -> bool:
        """True once init() has succeeded and until teardown()."""
        pass

    @abstractmethod
    async def init(self) -> bool:
        pass

    @abstractmethod
    async def teardown(self):
        pass

    @abstractmethod
    async def save_game_record(self, record: dict[str, Any]) -> bool:
        pass

    @abstractmethod
    async def save_reflection(self, record: dict[str, Any]) -> bool:
        pass

    @abstractmethod
    async def submit_claim(self, payload: dict[str, Any]) -> RemoteResult:
        pass

    @abstractmethod
    async def share_achievement(
        self,
        achievement: dict[str, Any],
        player_info: dict[str, Any],
    ) -> RemoteResult:
        pass

    @abstractmethod
    async def upsert_live_session(self, session_id: str, progress: dict[str, Any]) -> bool:
        pass

    @abstractmethod
    async def remove_live_session(self, session_id: str) -> bool:
        pass


@dataclass
class InMemoryRemoteClient(RemoteClient):
    """
    Remote client that keeps everything in memory.

    Failure controls:
        online=False      every call raises RemoteUnreachable
        fail_writes=True  durable writes return a falsy/failed result
        raise_writes=True durable writes raise RemoteWriteFailure
        fail_removals=N   the next N live-session removals fail
    """
    online: bool = True
    fail_writes: bool = False
    raise_writes: bool = False
    fail_removals: int = 0

    game_records: list[dict[str, Any]] = field(default_factory=list)
    reflections: list[dict[str, Any]] = field(default_factory=list)
    claims: list[dict[str, Any]] = field(default_factory=list)
    achievements: list[dict[str, Any]] = field(default_factory=list)
    live_sessions: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    _ready: bool = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def init(self) -> bool:
        self._ready = True
        return True

    async def teardown(self):
        self._ready = False
        self.live_sessions.clear()

    def _call(self, name: str):
        self.calls.append(name)
        if not self.online:
            raise RemoteUnreachable(f"{name}: service unreachable")

    def _write_fails(self, name: str) -> bool:
        if self.raise_writes:
            raise RemoteWriteFailure(f"{name}: write rejected")
        return self.fail_writes

    async def save_game_record(self, record: dict[str, Any]) -> bool:
        self._call("save_game_record")
        if self._write_fails("save_game_record"):
            return False
        self.game_records.append(dict(record))
        return True

    async def save_reflection(self, record: dict[str, Any]) -> bool:
        self._call("save_reflection")
        if self._write_fails("save_reflection"):
            return False
        self.reflections.append(dict(record))
        return True

    async def submit_claim(self, payload: dict[str, Any]) -> RemoteResult:
        self._call("submit_claim")
        if self._write_fails("submit_claim"):
            return RemoteResult.failure("Claim rejected")
        self.claims.append(dict(payload))
        return RemoteResult.ok()

    async def share_achievement(
        self,
        achievement: dict[str, Any],
        player_info: dict[str, Any],
    ) -> RemoteResult:
        self._call("share_achievement")
        if self._write_fails("share_achievement"):
            return RemoteResult.failure("Share rejected")
        self.achievements.append({"achievement": dict(achievement), "playerInfo": dict(player_info)})
        return RemoteResult.ok()

    async def upsert_live_session(self, session_id: str, progress: dict[str, Any]) -> bool:
        self._call("upsert_live_session")
        merged = {**self.live_sessions.get(session_id, {}), **progress, "sessionId": session_id}
        self.live_sessions[session_id] = merged
        return True

    async def remove_live_session(self, session_id: str) -> bool:
        self._call("remove_live_session")
        if self.fail_removals > 0:
            self.fail_removals -= 1
            return False
        self.live_sessions.pop(session_id, None)
        return True
