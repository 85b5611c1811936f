"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Translates API requests to state machine calls
2. Hosts sessions through the SessionManager
3. Routes side operations (reflections, claim submissions,
   achievement shares) into the durable sync queue
4. Reads the local leaderboard of finished games
5. Formats engine records as response schemas

This layer is framework-agnostic. Engine errors (InsufficientContent,
InvalidTransition, SessionNotFound) propagate to the caller, which maps
them to error responses.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..config import LEADERBOARD_DEFAULT_LIMIT
from ..content import sample_deck
from ..engine_core.achievements import achievement_by_id
from ..engine_core.action import DebriefSummary, GameSettings, RoundSubmission
from ..engine_core.state import Claim, Player, Session
from ..errors import SessionNotFound
from ..session import HostedSession, SessionManager
from ..sync.queue import QueueItemType, summarize_sync
from .schemas import (
    # Requests
    CreateSessionRequest,
    StartGameRequest,
    SubmitRoundRequest,
    ReflectionRequest,
    ClaimSubmissionRequest,
    ShareAchievementRequest,
    # Responses
    SessionResponse,
    RoundResponse,
    ResumeResponse,
    SavedGameResponse,
    QueueStatusResponse,
    SyncResponse,
    QueuedResponse,
    LeaderboardResponse,
    # Shared
    AchievementInfo,
    ClaimInfo,
    DebriefInfo,
    LeaderboardEntryInfo,
    LeaderboardPlayerInfo,
    LeaderboardStatsInfo,
    RoundResultInfo,
    TeamInfo,
)

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        await service.startup()

        session = service.create_session(CreateSessionRequest())
        service.start_game(session.session_id, StartGameRequest(team_name="Owls"))
        round_response = service.submit_round(session.session_id, request)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def startup(self):
        remote = self.session_manager.remote
        if remote is not None and not remote.ready:
            if not await remote.init():
                logger.warning("Remote service unavailable, results will queue locally")

    async def shutdown(self):
        self.session_manager.close()
        remote = self.session_manager.remote
        if remote is not None:
            await remote.teardown()

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest | None = None) -> SessionResponse:
        session_id = request.session_id if request else None
        hosted = self.session_manager.create_session(session_id)
        return self._session_to_response(hosted)

    def get_session(self, session_id: str) -> SessionResponse:
        return self._session_to_response(self._hosted(session_id))

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Game flow
    # =========================================================================

    def start_game(self, session_id: str, request: StartGameRequest) -> SessionResponse:
        hosted = self._hosted(session_id)
        if request.claims is not None:
            claims = [
                Claim(
                    claim_id=c.id,
                    text=c.text,
                    answer=c.answer,
                    difficulty=c.difficulty.value,
                    subject=c.subject,
                    source=c.source,
                    error_pattern=c.error_pattern,
                    explanation=c.explanation,
                )
                for c in request.claims
            ]
        else:
            claims = sample_deck(request.rounds, request.difficulty.value, seed=request.seed)

        hosted.game.start_game(GameSettings(
            team_name=request.team_name,
            claims=claims,
            rounds=request.rounds,
            predicted_score=request.predicted_score,
            difficulty=request.difficulty.value,
            avatar=request.avatar,
            players=[Player(p.first_name, p.last_initial) for p in request.players],
        ))
        return self._session_to_response(hosted)

    def submit_round(self, session_id: str, request: SubmitRoundRequest) -> RoundResponse:
        hosted = self._hosted(session_id)
        outcome = hosted.game.submit_round(RoundSubmission(
            verdict=request.verdict,
            confidence=request.confidence,
            hints_used=tuple(request.hints_used),
            reasoning=request.reasoning,
        ))
        return RoundResponse(
            result=RoundResultInfo.model_validate(outcome.result),
            streak=outcome.streak,
            finished=outcome.finished,
            session=self._session_to_response(hosted),
            debrief=self._debrief_to_info(outcome.debrief) if outcome.debrief else None,
        )

    def reset_game(self, session_id: str) -> SessionResponse:
        hosted = self._hosted(session_id)
        hosted.game.reset_game()
        return self._session_to_response(hosted)

    def resume_game(self, session_id: str) -> ResumeResponse:
        hosted = self._hosted(session_id)
        resumed = hosted.game.resume_saved_game()
        return ResumeResponse(resumed=resumed, session=self._session_to_response(hosted))

    def saved_game(self, session_id: str) -> SavedGameResponse | None:
        hosted = self._hosted(session_id)
        summary = hosted.game.snapshots.summary()
        if summary is None:
            return None
        return SavedGameResponse.model_validate(summary)

    # =========================================================================
    # Durable side operations
    # =========================================================================

    def submit_reflection(self, request: ReflectionRequest) -> QueuedResponse:
        payload = {
            "teamName": request.team_name or "Team",
            "reflectionPrompt": request.reflection_prompt,
            "reflectionResponse": request.reflection_response,
            "calibrationSelfAssessment": request.calibration_self_assessment,
            "gameScore": request.game_score,
            "accuracy": request.accuracy,
            "sessionId": request.session_id,
        }
        return self._enqueue(QueueItemType.REFLECTION, payload)

    def submit_claim(self, request: ClaimSubmissionRequest) -> QueuedResponse:
        payload = {
            "claimText": request.claim_text.strip(),
            "answer": request.answer.value,
            "difficulty": request.difficulty.value,
            "subject": request.subject,
            "explanation": request.explanation,
            "submitterName": request.submitter_name,
        }
        return self._enqueue(QueueItemType.CLAIM, payload)

    def share_achievement(self, request: ShareAchievementRequest) -> QueuedResponse:
        rule = achievement_by_id(request.achievement_id)
        if rule is None:
            raise ValueError(f"Unknown achievement: {request.achievement_id}")
        payload = {
            "achievement": rule.to_dict(),
            "playerInfo": {
                "playerName": request.player_name,
                "avatar": request.avatar,
                "gameScore": request.game_score,
            },
        }
        return self._enqueue(QueueItemType.ACHIEVEMENT, payload)

    # =========================================================================
    # Queue
    # =========================================================================

    def queue_status(self) -> QueueStatusResponse:
        queue = self.session_manager.queue
        remote = self.session_manager.remote
        return QueueStatusResponse(
            size=queue.size(),
            counts=queue.get_counts(),
            syncing=queue.syncing,
            remote_ready=bool(remote and remote.ready),
        )

    async def sync_queue(self) -> SyncResponse:
        result = await self.session_manager.sync_queue()
        summary = summarize_sync(result)
        message, level = summary if summary else (None, None)
        return SyncResponse(
            success=result.success,
            failed=result.failed,
            total=result.total,
            message=message,
            level=level,
        )

    # =========================================================================
    # Leaderboard
    # =========================================================================

    def leaderboard(self, limit: int = LEADERBOARD_DEFAULT_LIMIT) -> LeaderboardResponse:
        board = self.session_manager.leaderboard
        stats = board.stats()
        return LeaderboardResponse(
            top_teams=[self._entry_to_info(e) for e in board.top_teams(limit)],
            top_players=[
                LeaderboardPlayerInfo(
                    display_name=p["displayName"],
                    total_score=p["totalScore"],
                    games_played=p["gamesPlayed"],
                    best_score=p["bestScore"],
                    avg_score=p["avgScore"],
                )
                for p in board.top_players(limit)
            ],
            recent=[self._entry_to_info(e) for e in board.recent(limit)],
            stats=LeaderboardStatsInfo(
                total_games=stats["totalGames"],
                average_score=stats["averageScore"],
                highest_score=stats["highestScore"],
                average_accuracy=stats["averageAccuracy"],
            ),
        )

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _hosted(self, session_id: str) -> HostedSession:
        hosted = self.session_manager.get_session(session_id)
        if hosted is None:
            raise SessionNotFound(session_id)
        return hosted

    def _enqueue(self, item_type: QueueItemType, payload: dict) -> QueuedResponse:
        item = self.session_manager.queue.enqueue(item_type, payload)
        return QueuedResponse(queued=True, item_id=item.id, type=item.type)

    def _session_to_response(self, hosted: HostedSession) -> SessionResponse:
        session: Session = hosted.game.session
        return SessionResponse(
            session_id=hosted.session_id,
            phase=session.phase.value,
            current_round=session.current_round,
            total_rounds=session.total_rounds,
            difficulty=session.difficulty,
            current_claim=(
                ClaimInfo.model_validate(session.current_claim)
                if session.current_claim else None
            ),
            team=TeamInfo.model_validate(session.team),
            streak=hosted.game.streak,
            created_at=hosted.created_at,
        )

    def _debrief_to_info(self, debrief: DebriefSummary) -> DebriefInfo:
        def infos(ids: list[str]) -> list[AchievementInfo]:
            rules = [achievement_by_id(i) for i in ids]
            return [AchievementInfo.model_validate(r) for r in rules if r is not None]

        return DebriefInfo(
            raw_score=debrief.raw_score,
            predicted_score=debrief.predicted_score,
            calibration_bonus=debrief.calibration_bonus,
            final_score=debrief.final_score,
            accuracy=debrief.accuracy,
            achievements=infos(debrief.achievement_ids),
            new_lifetime_achievements=infos(debrief.new_lifetime_achievements),
            stats=debrief.stats.to_dict() if debrief.stats else {},
        )

    @staticmethod
    def _entry_to_info(entry: dict) -> LeaderboardEntryInfo:
        """Stored entries may predate some fields, so anything odd falls back to empty."""
        def optional(key: str, kind):
            value = entry.get(key)
            return value if isinstance(value, kind) and not isinstance(value, bool) else None

        achievements = entry.get("achievements")
        return LeaderboardEntryInfo(
            id=str(entry.get("id") or ""),
            team_name=entry["teamName"],
            team_avatar=optional("teamAvatar", str),
            player_names=[
                p["displayName"] if isinstance(p.get("displayName"), str) else p["firstName"]
                for p in entry["players"]
            ],
            score=entry["score"],
            accuracy=optional("accuracy", (int, float)),
            difficulty=optional("difficulty", str),
            rounds=optional("rounds", int),
            achievements=[a for a in achievements if isinstance(a, str)]
            if isinstance(achievements, list) else [],
            timestamp=int(entry["timestamp"]),
        )
