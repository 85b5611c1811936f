"""
Snapshot Store - Crash-recovery copy of an in-progress session.

Wire shape:
    {"version": 1, "gameState": {...Session}, "currentStreak": int, "savedAt": epoch-ms}

load() validates in a fixed order and discards (clearing the store) on
the first failure:
    1. parse    - not JSON, or not a JSON object
    2. version  - version != 1
    3. phase    - gameState missing or not in the playing phase
    4. invalid  - gameState structurally invalid
    5. stale    - older than the maximum age (24h)

No method raises. Storage failures degrade to False/None.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Union
import json
import logging
import math

from pydantic import BaseModel, StrictFloat, StrictInt, ValidationError

from ..config import SNAPSHOT_KEY, SNAPSHOT_VERSION, SNAPSHOT_MAX_AGE_MS
from ..engine_core.state import GamePhase, Session
from ..errors import CorruptOrStaleSnapshot
from ..timeutil import Clock, now_ms, time_ago_text
from .kv import KeyValueStore

logger = logging.getLogger(__name__)


REASON_PARSE = "parse"
REASON_VERSION = "version"
REASON_PHASE = "phase"
REASON_INVALID = "invalid"
REASON_STALE = "stale"


class _TeamShape(BaseModel):
    players: list[dict[str, Any]] = []
    results: list[dict[str, Any]] = []

    model_config = {"extra": "allow", "allow_inf_nan": False}


class _GameStateShape(BaseModel):
    """Minimum structure a saved gameState must have to be resumable."""
    currentRound: Union[StrictInt, StrictFloat]
    totalRounds: Union[StrictInt, StrictFloat]
    claims: list[dict[str, Any]]
    currentClaim: Optional[dict[str, Any]] = None
    team: _TeamShape

    model_config = {"extra": "allow", "allow_inf_nan": False}


@dataclass(frozen=True)
class Snapshot:
    version: int
    game_state: Session
    current_streak: int
    saved_at: int


@dataclass(frozen=True)
class SavedGameSummary:
    """Short description of a saved game for a 'resume?' prompt."""
    team_name: str
    current_round: int
    total_rounds: int
    score: int
    saved_at: int
    time_ago_text: str
    player_count: int


class SnapshotStore:
    """
    Durable snapshot of a playing-phase session.

    Usage:
        snapshots = SnapshotStore(store)
        snapshots.save(session, streak)
        saved = snapshots.load()
        if saved:
            session, streak = saved.game_state, saved.current_streak
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = SNAPSHOT_KEY,
        clock: Clock = now_ms,
        max_age_ms: int = SNAPSHOT_MAX_AGE_MS,
    ):
        self.store = store
        self.key = key
        self.clock = clock
        self.max_age_ms = max_age_ms
        self.last_discard_reason: str | None = None

    def save(self, session: Session, streak: int = 0) -> bool:
        """Persist a playing session. Any other phase is a no-op returning False."""
        if session.phase != GamePhase.PLAYING:
            return False
        return self.save_payload(session.to_dict(), streak)

    def save_payload(self, game_state: dict[str, Any], streak: int = 0) -> bool:
        """
        Persist an already-serialized session.

        Background writers serialize on the caller's side and hand the
        dict over, so the write never reads live state.
        """
        if game_state.get("phase") != GamePhase.PLAYING.value:
            return False
        data = {
            "version": SNAPSHOT_VERSION,
            "gameState": game_state,
            "currentStreak": streak,
            "savedAt": self.clock(),
        }
        try:
            self.store.set(self.key, json.dumps(data))
            return True
        except Exception as e:
            logger.warning("Failed to save game state: %s", e)
            return False

    def load(self) -> Snapshot | None:
        """Return the saved snapshot if it is valid and fresh, else None."""
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning("Failed to read saved game: %s", e)
            return None

        if raw is None:
            return None

        try:
            snapshot = self._validate(raw)
        except CorruptOrStaleSnapshot as e:
            self.last_discard_reason = e.reason
            if e.reason == REASON_STALE:
                logger.info("Saved game too old, clearing")
            else:
                logger.warning("%s", e)
            self.clear()
            return None

        self.last_discard_reason = None
        return snapshot

    def has_saved_game(self) -> bool:
        return self.load() is not None

    def clear(self):
        """Delete the snapshot. Idempotent, never raises."""
        try:
            self.store.remove(self.key)
        except Exception as e:
            logger.warning("Failed to clear saved game: %s", e)

    def summary(self) -> SavedGameSummary | None:
        saved = self.load()
        if not saved:
            return None
        session = saved.game_state
        return SavedGameSummary(
            team_name=session.team.name or "Team",
            current_round=session.current_round,
            total_rounds=session.total_rounds,
            score=session.team.score,
            saved_at=saved.saved_at,
            time_ago_text=time_ago_text(self.clock() - saved.saved_at),
            player_count=len(session.team.players),
        )

    def _validate(self, raw: str) -> Snapshot:
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CorruptOrStaleSnapshot(REASON_PARSE, str(e)) from e
        if not isinstance(parsed, dict):
            raise CorruptOrStaleSnapshot(REASON_PARSE, "not an object")

        if parsed.get("version") != SNAPSHOT_VERSION:
            raise CorruptOrStaleSnapshot(
                REASON_VERSION, f"version {parsed.get('version')!r}"
            )

        game_state = parsed.get("gameState")
        if not isinstance(game_state, dict) or game_state.get("phase") != GamePhase.PLAYING.value:
            raise CorruptOrStaleSnapshot(REASON_PHASE, "not an in-progress game")

        try:
            _GameStateShape.model_validate(game_state)
            session = Session.from_dict(game_state)
        except (
            ValidationError, KeyError, ValueError, TypeError, AttributeError, ArithmeticError,
        ) as e:
            raise CorruptOrStaleSnapshot(REASON_INVALID, str(e)) from e

        saved_at = parsed.get("savedAt")
        if (
            not isinstance(saved_at, (int, float)) or isinstance(saved_at, bool)
            or not math.isfinite(saved_at)
        ):
            raise CorruptOrStaleSnapshot(REASON_STALE, "missing savedAt")
        if self.clock() - saved_at > self.max_age_ms:
            raise CorruptOrStaleSnapshot(REASON_STALE)

        streak = parsed.get("currentStreak")
        if not isinstance(streak, int) or isinstance(streak, bool):
            streak = 0

        return Snapshot(
            version=SNAPSHOT_VERSION,
            game_state=session,
            current_streak=streak,
            saved_at=int(saved_at),
        )
