"""
Session State Machine - Owns the canonical session and drives it
through its phases.

    setup --start_game--> playing --submit_round (last)--> debrief
      ^                                                      |
      +-------------------------reset_game-------------------+

In-memory transitions are synchronous and replace the whole Session.
Their side effects are handed to a Dispatcher as fire-and-forget jobs
that only see data captured at dispatch time:
- snapshot write on start and on every round advance
- snapshot clear on debrief and reset
- durable 'game' record on the sync queue at debrief
- local leaderboard entry at debrief
- best-effort live progress push/removal

A remote failure never blocks local progress.
"""

from __future__ import annotations
from typing import Callable
import logging
import threading

from ..config import RESUME_DRAIN_TIMEOUT_S, STREAK_CUE_DELAY_S, STREAK_CUE_THRESHOLD
from ..errors import InsufficientContent, InvalidTransition
from ..storage.kv import MemoryStore
from ..storage.leaderboard import Leaderboard
from ..storage.profile import PlayerProfile
from ..storage.snapshot import SnapshotStore
from ..sync.dispatch import Dispatcher, InlineDispatcher
from ..sync.live import LiveProgress, LiveProgressPublisher
from ..sync.queue import QueueItemType, SyncQueue, SyncResult
from ..sync.remote import RemoteClient
from ..timeutil import Clock, now_ms
from .achievements import earned_achievement_ids
from .action import DebriefSummary, GameSettings, RoundOutcome, RoundSubmission
from .scoring import accuracy_percent, calibration_bonus, final_score, score_round
from .state import GamePhase, Session, Team
from .stats import compute_game_stats

logger = logging.getLogger(__name__)

StreakCue = Callable[[int], None]


class GameSession:
    """
    One quiz session and its collaborators.

    Usage:
        game = GameSession(snapshots=SnapshotStore(store), queue=SyncQueue(store))
        game.start_game(GameSettings(team_name="Owls", claims=deck, rounds=5))
        outcome = game.submit_round(RoundSubmission(Verdict.TRUE, confidence=3))
        if outcome.finished:
            show_debrief(outcome.debrief)
    """

    def __init__(
        self,
        snapshots: SnapshotStore | None = None,
        queue: SyncQueue | None = None,
        dispatcher: Dispatcher | None = None,
        live: LiveProgressPublisher | None = None,
        profile: PlayerProfile | None = None,
        leaderboard: Leaderboard | None = None,
        clock: Clock = now_ms,
        on_streak_cue: StreakCue | None = None,
        streak_cue_delay: float = STREAK_CUE_DELAY_S,
        streak_cue_threshold: int = STREAK_CUE_THRESHOLD,
        session_id: str | None = None,
        resume_drain_timeout: float = RESUME_DRAIN_TIMEOUT_S,
    ):
        self.snapshots = snapshots or SnapshotStore(MemoryStore(), clock=clock)
        self.queue = queue or SyncQueue(MemoryStore(), clock=clock)
        self.live = live or LiveProgressPublisher(None)
        self.profile = profile
        self.leaderboard = leaderboard
        self.clock = clock
        self.on_streak_cue = on_streak_cue
        self.streak_cue_delay = streak_cue_delay
        self.streak_cue_threshold = streak_cue_threshold
        self.resume_drain_timeout = resume_drain_timeout

        self._owns_dispatcher = dispatcher is None
        self.dispatcher = dispatcher or InlineDispatcher()

        self._session = Session.initial(session_id)
        self._streak = 0
        self._lock = threading.RLock()
        self._alive = True

        self._cue_timer: threading.Timer | None = None
        self._cue_generation = 0

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def session(self) -> Session:
        """Current session. Always a complete, consistent record."""
        return self._session

    @property
    def streak(self) -> int:
        return self._streak

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def alive(self) -> bool:
        return self._alive

    # =========================================================================
    # Transitions
    # =========================================================================

    def start_game(self, settings: GameSettings) -> Session:
        """
        setup -> playing.

        Raises:
            InvalidTransition: not in the setup phase
            InsufficientContent: fewer claims than rounds
        """
        with self._lock:
            self._require_alive("start_game")
            current = self._session
            if current.phase != GamePhase.SETUP:
                raise InvalidTransition("start_game", current.phase.value)
            if settings.rounds < 1:
                raise ValueError(f"rounds must be positive, got {settings.rounds}")

            claims = tuple(settings.claims)
            if not claims or len(claims) < settings.rounds:
                raise InsufficientContent(settings.rounds, len(claims))

            session = current._copy_with(
                phase=GamePhase.PLAYING,
                current_round=1,
                total_rounds=settings.rounds,
                claims=claims,
                current_claim=claims[0],
                difficulty=settings.difficulty,
                team=Team(
                    name=settings.team_name,
                    score=0,
                    predicted_score=settings.predicted_score,
                    results=(),
                    avatar=settings.avatar,
                    players=tuple(settings.players),
                ),
            )
            self._session = session
            self._streak = 0
            self._cancel_streak_cue()

            logger.info(
                "Session %s started: team=%r rounds=%d",
                session.session_id, session.team.name, session.total_rounds,
            )
            self._save_snapshot(session, 0)
            self._publish_progress(session)
            return session

    def submit_round(self, submission: RoundSubmission) -> RoundOutcome:
        """
        Score the current claim and advance.

        On the last round the session moves to debrief and the
        outcome carries a DebriefSummary.

        Raises:
            InvalidTransition: not playing, or no current claim
        """
        with self._lock:
            self._require_alive("submit_round")
            session = self._session
            if session.phase != GamePhase.PLAYING:
                raise InvalidTransition("submit_round", session.phase.value)
            if session.current_claim is None:
                raise InvalidTransition(
                    "submit_round", session.phase.value,
                    f"no claim for round {session.current_round}",
                )

            result = score_round(session.current_claim, submission, session.current_round)
            team = session.team._copy_with(
                score=session.team.score + result.points,
                results=session.team.results + (result,),
            )
            streak = self._streak + 1 if result.correct else 0
            self._streak = streak
            if result.correct and streak >= self.streak_cue_threshold:
                self._schedule_streak_cue(streak)

            if not session.is_last_round:
                next_round = session.current_round + 1
                next_claim = session.claim_for_round(next_round)
                if next_claim is None:
                    logger.warning(
                        "Session %s has no claim for round %d of %d",
                        session.session_id, next_round, session.total_rounds,
                    )
                updated = session._copy_with(
                    current_round=next_round,
                    current_claim=next_claim,
                    team=team,
                )
                self._session = updated
                self._save_snapshot(updated, streak)
                self._publish_progress(updated)
                return RoundOutcome(result=result, streak=streak, session=updated)

            finished = session._copy_with(
                phase=GamePhase.DEBRIEF,
                current_claim=None,
                team=team,
            )
            self._session = finished
            debrief = self._finish(finished)
            return RoundOutcome(result=result, streak=streak, session=finished, debrief=debrief)

    def reset_game(self) -> Session:
        """
        Any phase -> setup with a fresh session.

        Pending queue items are left alone.
        """
        with self._lock:
            previous = self._session
            self._cancel_streak_cue()
            self._session = Session.initial(previous.session_id)
            self._streak = 0
            self._dispatch(self.snapshots.clear, "snapshot clear")
            if previous.phase == GamePhase.PLAYING:
                self._remove_live_record(previous.session_id)
            logger.info("Session %s reset", previous.session_id)
            return self._session

    def resume_saved_game(self) -> bool:
        """
        setup -> playing from the saved snapshot.

        Returns True if a snapshot was restored.
        """
        with self._lock:
            self._require_alive("resume_saved_game")
            if self._session.phase != GamePhase.SETUP:
                raise InvalidTransition("resume_saved_game", self._session.phase.value)

            if not self.dispatcher.drain(self.resume_drain_timeout):
                logger.warning(
                    "Session %s: pending writes not finished after %.1fs, resuming anyway",
                    self._session.session_id, self.resume_drain_timeout,
                )
            saved = self.snapshots.load()
            if saved is None:
                return False

            self._session = saved.game_state
            self._streak = saved.current_streak
            logger.info(
                "Session %s resumed at round %d/%d",
                self._session.session_id, self._session.current_round, self._session.total_rounds,
            )
            return True

    def teardown(self, timeout: float | None = 1.0):
        """
        Stop the session for good.

        Cancels the streak cue and lets queued side effects finish
        within timeout. No transition is accepted afterwards.
        """
        with self._lock:
            if not self._alive:
                return
            self._cancel_streak_cue()
            self._alive = False
            if self._owns_dispatcher:
                self.dispatcher.close(timeout)

    async def sync_pending(self, remote: RemoteClient | None) -> SyncResult:
        """Flush the sync queue, stopping early if the session is torn down."""
        return await self.queue.sync(remote, alive=lambda: self._alive)

    # =========================================================================
    # Debrief
    # =========================================================================

    def _finish(self, session: Session) -> DebriefSummary:
        team = session.team
        bonus = calibration_bonus(team.score, team.predicted_score)
        final = final_score(team.score, team.predicted_score)
        stats = compute_game_stats(team.results, session.claims, team.score, team.predicted_score)
        achievement_ids = earned_achievement_ids(stats)
        accuracy = accuracy_percent(team.correct_count, len(team.results))

        record = {
            "sessionId": session.session_id,
            "teamName": team.name,
            "teamAvatar": team.avatar,
            "players": [p.to_dict() for p in team.players],
            # Final score with the calibration bonus. Leaderboards rank on this, not rawScore
            "score": final,
            "rawScore": team.score,
            "predictedScore": team.predicted_score,
            "calibrationBonus": bonus,
            "accuracy": accuracy,
            "difficulty": session.difficulty,
            "rounds": session.total_rounds,
            "achievements": achievement_ids,
            "results": [r.to_dict() for r in team.results],
            "timestamp": self.clock(),
        }

        self._dispatch(self.snapshots.clear, "snapshot clear")
        self._dispatch(lambda: self.queue.enqueue(QueueItemType.GAME, record), "game record")
        if self.leaderboard is not None:
            self._dispatch(lambda: self.leaderboard.save(record), "leaderboard entry")
        if self.live.enabled:
            progress = LiveProgress.from_session(session)
            session_id = session.session_id
            self._dispatch(lambda: self.live.finish(session_id, progress), "live finish")

        new_lifetime = self._record_profile(session, stats, final)

        logger.info(
            "Session %s finished: score=%d final=%d accuracy=%d%%",
            session.session_id, team.score, final, accuracy,
        )
        return DebriefSummary(
            raw_score=team.score,
            predicted_score=team.predicted_score,
            calibration_bonus=bonus,
            final_score=final,
            accuracy=accuracy,
            achievement_ids=achievement_ids,
            stats=stats,
            new_lifetime_achievements=new_lifetime,
        )

    def _record_profile(self, session: Session, stats, final: int) -> list[str]:
        """Fold a solo game into the lifetime profile. Failures only cost the announcement."""
        if self.profile is None or len(session.team.players) != 1:
            return []
        try:
            return [rule.id for rule in self.profile.record_game(session, stats, final)]
        except Exception:
            logger.exception("Session %s: failed to update player profile", session.session_id)
            return []

    # =========================================================================
    # Side effects
    # =========================================================================

    def _dispatch(self, job, name: str):
        self.dispatcher.submit(job, name)

    def _save_snapshot(self, session: Session, streak: int):
        payload = session.to_dict()
        self._dispatch(lambda: self.snapshots.save_payload(payload, streak), "snapshot save")

    def _publish_progress(self, session: Session):
        if not self.live.enabled:
            return
        progress = LiveProgress.from_session(session)
        session_id = session.session_id
        self._dispatch(lambda: self.live.publish(session_id, progress), "live progress")

    def _remove_live_record(self, session_id: str):
        if self.live.enabled:
            self._dispatch(lambda: self.live.remove(session_id), "live removal")

    def _require_alive(self, operation: str):
        if not self._alive:
            raise InvalidTransition(operation, self._session.phase.value, "session torn down")

    # =========================================================================
    # Streak cue
    # =========================================================================

    def _schedule_streak_cue(self, streak: int):
        if self.on_streak_cue is None:
            return
        self._cancel_streak_cue()
        generation = self._cue_generation
        timer = threading.Timer(self.streak_cue_delay, self._fire_streak_cue, args=(streak, generation))
        timer.daemon = True
        self._cue_timer = timer
        timer.start()

    def _fire_streak_cue(self, streak: int, generation: int):
        with self._lock:
            if not self._alive or generation != self._cue_generation:
                return
            self._cue_timer = None
        try:
            self.on_streak_cue(streak)
        except Exception:
            logger.exception("Streak cue callback failed")

    def _cancel_streak_cue(self):
        self._cue_generation += 1
        if self._cue_timer is not None:
            self._cue_timer.cancel()
            self._cue_timer = None
