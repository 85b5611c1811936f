"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between quiz clients and the engine.
The answer and explanation of a claim are never sent while it is being
played; they appear only in round results.

Error Codes:
- INSUFFICIENT_CONTENT: Not enough claims for the requested rounds
- INVALID_TRANSITION: Operation not legal in the session's phase
- SESSION_NOT_FOUND: Session does not exist or has ended
- VALIDATION_ERROR: Request body failed validation
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.state import Verdict, Difficulty


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    INSUFFICIENT_CONTENT = "INSUFFICIENT_CONTENT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    """A named player on the team."""
    first_name: str
    last_initial: str = ""

    model_config = {"from_attributes": True}


class ClaimInput(BaseModel):
    """A claim supplied by the client when starting a game."""
    id: str
    text: str
    answer: Verdict
    difficulty: Difficulty = Difficulty.MEDIUM
    subject: str = ""
    source: str = ""
    error_pattern: Optional[str] = None
    explanation: str = ""


class ClaimInfo(BaseModel):
    """The claim currently in play, without its answer."""
    claim_id: str
    text: str
    difficulty: str
    subject: str = ""

    model_config = {"from_attributes": True}


class RoundResultInfo(BaseModel):
    """One scored round."""
    claim_id: str
    team_verdict: Verdict
    confidence: int
    correct: bool
    points: int
    hints_used: int
    round: int
    reasoning: Optional[str] = None

    model_config = {"from_attributes": True}


class TeamInfo(BaseModel):
    name: str
    score: int
    predicted_score: int
    avatar: Optional[str] = None
    players: list[PlayerInfo] = Field(default_factory=list)
    results: list[RoundResultInfo] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class AchievementInfo(BaseModel):
    id: str
    name: str
    description: str
    icon: str = ""
    category: Optional[str] = None

    model_config = {"from_attributes": True}


class DebriefInfo(BaseModel):
    """End-of-game values. final_score includes the calibration bonus."""
    raw_score: int
    predicted_score: int
    calibration_bonus: int
    final_score: int
    accuracy: int
    achievements: list[AchievementInfo] = Field(default_factory=list)
    new_lifetime_achievements: list[AchievementInfo] = Field(default_factory=list)
    stats: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create (or re-host) a session."""
    session_id: Optional[str] = Field(
        None, description="Reuse an id, e.g. to resume a saved game after a restart"
    )


class StartGameRequest(BaseModel):
    """Settings chosen in setup."""
    team_name: str = Field(..., min_length=1, max_length=60)
    rounds: int = Field(5, ge=1, le=50)
    predicted_score: int = Field(0, description="Team's prediction of its final score")
    difficulty: Difficulty = Difficulty.MIXED
    avatar: Optional[str] = None
    players: list[PlayerInfo] = Field(default_factory=list)
    claims: Optional[list[ClaimInput]] = Field(
        None, description="Claims to play; the built-in sample deck is used if omitted"
    )
    seed: Optional[int] = Field(None, description="Shuffle seed for the sample deck")


class SubmitRoundRequest(BaseModel):
    verdict: Verdict
    confidence: int = Field(..., ge=1, le=3)
    hints_used: list[str] = Field(default_factory=list)
    reasoning: Optional[str] = Field(None, max_length=1000)


class ReflectionRequest(BaseModel):
    """A team's end-of-game reflection."""
    team_name: str = "Team"
    reflection_prompt: str = ""
    reflection_response: str = Field("", max_length=2000)
    calibration_self_assessment: Optional[str] = None
    game_score: int = 0
    accuracy: int = 0
    session_id: Optional[str] = None


class ClaimSubmissionRequest(BaseModel):
    """A student-written claim sent for review."""
    claim_text: str = Field(..., min_length=10, max_length=500)
    answer: Verdict
    difficulty: Difficulty = Difficulty.MEDIUM
    subject: str = ""
    explanation: str = Field("", max_length=1000)
    submitter_name: str = "Anonymous"


class ShareAchievementRequest(BaseModel):
    achievement_id: str
    player_name: str = "Anonymous"
    avatar: Optional[str] = None
    game_score: int = 0


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """A session as clients see it."""
    session_id: str
    phase: str
    current_round: int
    total_rounds: int
    difficulty: str
    current_claim: Optional[ClaimInfo] = None
    team: TeamInfo
    streak: int = 0
    created_at: float = 0.0
    api_version: str = "v1"


class RoundResponse(BaseModel):
    """Response after submitting a round."""
    result: RoundResultInfo
    streak: int
    finished: bool
    session: SessionResponse
    debrief: Optional[DebriefInfo] = None
    api_version: str = "v1"


class ResumeResponse(BaseModel):
    resumed: bool
    session: SessionResponse
    api_version: str = "v1"


class SavedGameResponse(BaseModel):
    """Summary of a resumable saved game."""
    team_name: str
    current_round: int
    total_rounds: int
    score: int
    saved_at: int
    time_ago_text: str
    player_count: int

    model_config = {"from_attributes": True}


class QueueStatusResponse(BaseModel):
    size: int
    counts: dict[str, int] = Field(default_factory=dict)
    syncing: bool = False
    remote_ready: bool = False


class SyncResponse(BaseModel):
    success: int
    failed: int
    total: int
    message: Optional[str] = None
    level: Optional[NotificationLevel] = None


class QueuedResponse(BaseModel):
    """A durable write accepted into the outbox."""
    queued: bool
    item_id: str
    type: str


class LeaderboardEntryInfo(BaseModel):
    """One finished game on the local leaderboard."""
    id: str
    team_name: str
    team_avatar: Optional[str] = None
    player_names: list[str] = Field(default_factory=list)
    score: float = Field(..., description="Final score including the calibration bonus")
    accuracy: Optional[float] = None
    difficulty: Optional[str] = None
    rounds: Optional[int] = None
    achievements: list[str] = Field(default_factory=list)
    timestamp: int


class LeaderboardPlayerInfo(BaseModel):
    display_name: str
    total_score: float
    games_played: int
    best_score: float
    avg_score: int


class LeaderboardStatsInfo(BaseModel):
    total_games: int
    average_score: int
    highest_score: float
    average_accuracy: float


class LeaderboardResponse(BaseModel):
    """Local leaderboard: best teams, best players and latest games."""
    top_teams: list[LeaderboardEntryInfo]
    top_players: list[LeaderboardPlayerInfo]
    recent: list[LeaderboardEntryInfo]
    stats: LeaderboardStatsInfo


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    environment: str
