"""
Engine Core - Deterministic quiz session rules.

The engine is the part that:
1. Holds the canonical Session record
2. Scores rounds (exact point and calibration tables)
3. Aggregates stats and evaluates achievement rules
4. Drives the phase state machine (engine_core.machine)

Everything exported here is pure. The state machine lives in
engine_core.machine because it wires in storage and sync.
"""

from .state import (
    GamePhase,
    Verdict,
    Difficulty,
    Claim,
    Player,
    RoundResult,
    Team,
    Session,
)
from .action import GameSettings, RoundSubmission, RoundOutcome, DebriefSummary
from .scoring import (
    compute_points,
    hint_deduction,
    net_points,
    calibration_bonus,
    final_score,
    accuracy_percent,
    score_round,
)
from .stats import GameStats, LifetimeStats, SubjectStats, compute_game_stats
from .achievements import (
    AchievementRule,
    ACHIEVEMENTS,
    LIFETIME_ACHIEVEMENTS,
    earned_achievements,
    earned_achievement_ids,
    new_lifetime_achievements,
    achievement_by_id,
)

__all__ = [
    "GamePhase",
    "Verdict",
    "Difficulty",
    "Claim",
    "Player",
    "RoundResult",
    "Team",
    "Session",
    "GameSettings",
    "RoundSubmission",
    "RoundOutcome",
    "DebriefSummary",
    "compute_points",
    "hint_deduction",
    "net_points",
    "calibration_bonus",
    "final_score",
    "accuracy_percent",
    "score_round",
    "GameStats",
    "LifetimeStats",
    "SubjectStats",
    "compute_game_stats",
    "AchievementRule",
    "ACHIEVEMENTS",
    "LIFETIME_ACHIEVEMENTS",
    "earned_achievements",
    "earned_achievement_ids",
    "new_lifetime_achievements",
    "achievement_by_id",
]
