"""
Live Progress Publisher - Best-effort push of session progress for
concurrent viewers (e.g. a live class leaderboard).

Best-effort means:
- never routed through the durable sync queue
- a failed push is logged and forgotten
- removing the record on exit is retried a bounded number of times
  with a fixed delay, then given up on
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
import asyncio
import logging

from ..config import LIVE_CLEANUP_ATTEMPTS, LIVE_CLEANUP_DELAY_S
from ..engine_core.scoring import accuracy_percent
from ..engine_core.state import Session
from .remote import RemoteClient

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class LiveProgress:
    """What concurrent viewers see of a running session."""
    team_name: str
    team_avatar: str | None
    players: list[dict[str, str]] = field(default_factory=list)
    current_score: int = 0
    current_round: int = 1
    total_rounds: int = 0
    accuracy: int = 0

    @classmethod
    def from_session(cls, session: Session) -> LiveProgress:
        results = session.team.results
        return cls(
            team_name=session.team.name or "Team",
            team_avatar=session.team.avatar,
            players=[p.to_dict() for p in session.team.players],
            current_score=session.team.score,
            current_round=session.current_round,
            total_rounds=session.total_rounds,
            accuracy=accuracy_percent(session.team.correct_count, len(results)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "teamName": self.team_name,
            "teamAvatar": self.team_avatar,
            "players": self.players,
            "currentScore": self.current_score,
            "currentRound": self.current_round,
            "totalRounds": self.total_rounds,
            "accuracy": self.accuracy,
            "isActive": True,
        }


class LiveProgressPublisher:
    """
    Publishes progress for live viewers.

    Usage:
        publisher = LiveProgressPublisher(remote)
        await publisher.publish(session_id, LiveProgress.from_session(session))
        await publisher.finish(session_id, final_progress)
    """

    def __init__(
        self,
        remote: RemoteClient | None,
        max_attempts: int = LIVE_CLEANUP_ATTEMPTS,
        retry_delay: float = LIVE_CLEANUP_DELAY_S,
        sleep: Sleep = asyncio.sleep,
        on_cleanup_lost: Callable[[str], None] | None = None,
    ):
        self.remote = remote
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.on_cleanup_lost = on_cleanup_lost

    @property
    def enabled(self) -> bool:
        return self.remote is not None and self.remote.ready

    async def publish(self, session_id: str, progress: LiveProgress) -> bool:
        """Upsert the live record once. Failures are logged, never raised."""
        if not self.enabled:
            return False
        try:
            return bool(await self.remote.upsert_live_session(session_id, progress.to_dict()))
        except Exception as e:
            logger.warning("Failed to update live session %s: %s", session_id, e)
            return False

    async def remove(self, session_id: str) -> bool:
        """
        Remove the live record with bounded retries.

        At most max_attempts calls with retry_delay between them.
        Returns False and signals on_cleanup_lost if every attempt fails.
        """
        if not self.enabled:
            return False

        for attempt in range(1, self.max_attempts + 1):
            try:
                if await self.remote.remove_live_session(session_id):
                    return True
            except Exception as e:
                logger.warning(
                    "Live session cleanup attempt %d/%d failed: %s",
                    attempt, self.max_attempts, e,
                )
            if attempt < self.max_attempts:
                await self.sleep(self.retry_delay)

        logger.warning(
            "Giving up on removing live session %s after %d attempts",
            session_id, self.max_attempts,
        )
        if self.on_cleanup_lost:
            self.on_cleanup_lost(session_id)
        return False

    async def finish(self, session_id: str, progress: LiveProgress) -> bool:
        """Push the final progress, then remove the record."""
        await self.publish(session_id, progress)
        return await self.remove(session_id)
