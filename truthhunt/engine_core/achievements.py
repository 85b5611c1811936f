"""
Achievement Evaluator - Declarative rule tables over immutable stats.

Two tables:
- ACHIEVEMENTS: per-game rules, evaluated against GameStats
- LIFETIME_ACHIEVEMENTS: cumulative rules, evaluated against LifetimeStats

Rules are (id, pure predicate) pairs. Evaluation is a filter over the
table, so results always come back in table order.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Collection

from .stats import GameStats, LifetimeStats


@dataclass(frozen=True)
class AchievementRule:
    """An achievement and the condition that earns it."""
    id: str
    name: str
    description: str
    predicate: Callable[[Any], bool]
    icon: str = ""
    category: str | None = None

    def is_satisfied(self, stats: Any) -> bool:
        return bool(self.predicate(stats))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "category": self.category,
        }


# ============================================================================
# Per-game rules
# ============================================================================

ACHIEVEMENTS: tuple[AchievementRule, ...] = (
    AchievementRule(
        "first-truth", "Truth Seeker", "Get your first answer correct",
        lambda s: s.total_correct >= 1, icon="🔍",
    ),
    AchievementRule(
        "streak-3", "On Fire", "Get 3 correct answers in a row",
        lambda s: s.max_streak >= 3, icon="🔥",
    ),
    AchievementRule(
        "streak-5", "Unstoppable", "Get 5 correct answers in a row",
        lambda s: s.max_streak >= 5, icon="⚡",
    ),
    AchievementRule(
        "ai-detector", "AI Detector", "Correctly identify 3 AI-generated claims",
        lambda s: s.ai_caught_correct >= 3, icon="🤖",
    ),
    AchievementRule(
        "calibrated", "Well Calibrated", "Predict your final score within ±2 points",
        lambda s: s.calibration_bonus, icon="🎯",
    ),
    AchievementRule(
        "humble-learner", "Humble Learner", "Use low confidence and get it right 3+ times",
        lambda s: s.humble_correct >= 3, icon="🌱",
    ),
    AchievementRule(
        "risk-taker", "Calculated Risk", "Use high confidence and get it right 3+ times",
        lambda s: s.bold_correct >= 3, icon="💎",
    ),
    AchievementRule(
        "perfect-round", "Perfect Game", "Get every answer correct in a game",
        lambda s: s.perfect_game, icon="👑",
    ),
    AchievementRule(
        "myth-buster", "Myth Buster", "Correctly identify 3 myth perpetuation errors",
        lambda s: s.myths_busted >= 3, icon="💥",
    ),
    AchievementRule(
        "mixed-master", "Nuance Navigator", "Correctly identify 3 MIXED claims",
        lambda s: s.mixed_correct >= 3, icon="⚖️",
    ),
    AchievementRule(
        "team-player", "Team Spirit", "Complete a full game with your team",
        lambda s: s.game_completed, icon="🤝",
    ),
    AchievementRule(
        "comeback-kid", "Comeback Kid", "Win after being in negative points",
        lambda s: s.comeback, icon="🚀",
    ),
)


def _subject_master(stats: LifetimeStats) -> bool:
    return any(
        s.total >= 10 and s.correct / s.total >= 0.8
        for s in stats.subject_stats.values()
    )


def _lifetime(id, name, description, icon, category, predicate) -> AchievementRule:
    return AchievementRule(id, name, description, predicate, icon=icon, category=category)


# ============================================================================
# Lifetime rules
# ============================================================================

LIFETIME_ACHIEVEMENTS: tuple[AchievementRule, ...] = (
    # Game milestones
    _lifetime("lifetime-first-game", "First Steps", "Complete your first game",
              "🎮", "milestone", lambda s: s.total_games >= 1),
    _lifetime("lifetime-10-games", "Getting Started", "Complete 10 games",
              "🌟", "milestone", lambda s: s.total_games >= 10),
    _lifetime("lifetime-25-games", "Dedicated Learner", "Complete 25 games",
              "📚", "milestone", lambda s: s.total_games >= 25),
    _lifetime("lifetime-50-games", "Truth Hunter Veteran", "Complete 50 games",
              "🏆", "milestone", lambda s: s.total_games >= 50),
    _lifetime("lifetime-100-games", "Master Truth Hunter", "Complete 100 games",
              "👑", "milestone", lambda s: s.total_games >= 100),
    # Accuracy
    _lifetime("lifetime-100-correct", "Century Club", "Get 100 answers correct",
              "💯", "accuracy", lambda s: s.total_correct >= 100),
    _lifetime("lifetime-500-correct", "Knowledge Seeker", "Get 500 answers correct",
              "🧠", "accuracy", lambda s: s.total_correct >= 500),
    _lifetime("lifetime-1000-correct", "Walking Encyclopedia", "Get 1000 answers correct",
              "📖", "accuracy", lambda s: s.total_correct >= 1000),
    # Streaks
    _lifetime("lifetime-streak-7", "Hot Streak", "Achieve a 7-answer streak",
              "🔥", "streak", lambda s: s.best_streak >= 7),
    _lifetime("lifetime-streak-10", "Unstoppable Force", "Achieve a 10-answer streak",
              "⚡", "streak", lambda s: s.best_streak >= 10),
    # Dedication
    _lifetime("lifetime-day-streak-3", "Three Day Warrior", "Play for 3 days in a row",
              "📅", "dedication", lambda s: s.current_day_streak >= 3),
    _lifetime("lifetime-day-streak-7", "Week Warrior", "Play for 7 days in a row",
              "🗓️", "dedication", lambda s: s.current_day_streak >= 7),
    _lifetime("lifetime-day-streak-30", "Monthly Master", "Play for 30 days in a row",
              "🌙", "dedication", lambda s: s.current_day_streak >= 30),
    # Calibration
    _lifetime("lifetime-calibrated-5", "Self-Aware", "Predict your score within +/-2 five times",
              "🎯", "calibration", lambda s: s.calibrated_predictions >= 5),
    _lifetime("lifetime-calibrated-20", "Master Calibrator", "Predict your score within +/-2 twenty times",
              "🔮", "calibration", lambda s: s.calibrated_predictions >= 20),
    # Mastery
    _lifetime("lifetime-subject-master", "Subject Expert",
              "Achieve 80%+ accuracy in any subject (min 10 questions)",
              "🎓", "mastery", _subject_master),
    _lifetime("lifetime-polymath", "Polymath", "Play questions from 10+ different subjects",
              "🌐", "mastery", lambda s: len(s.subject_stats) >= 10),
    # Explorer
    _lifetime("lifetime-explorer-25", "Curious Mind", "See 25 different claims",
              "🔍", "explorer", lambda s: s.claims_seen >= 25),
    _lifetime("lifetime-explorer-50", "Truth Explorer", "See 50 different claims",
              "🗺️", "explorer", lambda s: s.claims_seen >= 50),
    _lifetime("lifetime-explorer-100", "Claim Collector", "See 100 different claims",
              "📜", "explorer", lambda s: s.claims_seen >= 100),
    _lifetime("lifetime-explorer-all", "Seen It All", "See all 150 claims in the game",
              "🌟", "explorer", lambda s: s.claims_seen >= 150),
    # Score
    _lifetime("lifetime-score-20", "High Scorer", "Score 20+ points in a single game",
              "⭐", "score", lambda s: s.best_score >= 20),
    _lifetime("lifetime-score-30", "Star Performer", "Score 30+ points in a single game",
              "💫", "score", lambda s: s.best_score >= 30),
    _lifetime("lifetime-score-50", "Legendary Score", "Score 50+ points in a single game",
              "🏅", "score", lambda s: s.best_score >= 50),
    # Confidence
    _lifetime("lifetime-bold-master", "Bold and Right", "Get 25 high-confidence answers correct",
              "💎", "confidence", lambda s: s.high_confidence_correct >= 25),
    _lifetime("lifetime-humble-master", "Wisely Cautious", "Get 25 low-confidence answers correct",
              "🌱", "confidence", lambda s: s.low_confidence_correct >= 25),
    # Points
    _lifetime("lifetime-points-100", "Point Collector", "Earn 100 total points",
              "💰", "points", lambda s: s.total_points >= 100),
    _lifetime("lifetime-points-500", "Point Hoarder", "Earn 500 total points",
              "💎", "points", lambda s: s.total_points >= 500),
    _lifetime("lifetime-points-1000", "Point Master", "Earn 1000 total points",
              "👑", "points", lambda s: s.total_points >= 1000),
)


ACHIEVEMENT_CATEGORIES: dict[str, str] = {
    "milestone": "Milestones",
    "accuracy": "Accuracy",
    "streak": "Streaks",
    "dedication": "Dedication",
    "calibration": "Calibration",
    "mastery": "Mastery",
    "explorer": "Explorer",
    "score": "Scoring",
    "confidence": "Confidence",
    "points": "Points",
}


def earned_achievements(
    stats: GameStats,
    rules: tuple[AchievementRule, ...] = ACHIEVEMENTS,
) -> list[AchievementRule]:
    """Every per-game rule satisfied by stats, in table order."""
    return [rule for rule in rules if rule.is_satisfied(stats)]


def earned_achievement_ids(stats: GameStats) -> list[str]:
    return [rule.id for rule in earned_achievements(stats)]


def all_lifetime_achievements(stats: LifetimeStats) -> list[AchievementRule]:
    return [rule for rule in LIFETIME_ACHIEVEMENTS if rule.is_satisfied(stats)]


def new_lifetime_achievements(
    stats: LifetimeStats,
    already_awarded: Collection[str] = (),
) -> list[AchievementRule]:
    """Lifetime rules satisfied now that were not awarded before."""
    awarded = set(already_awarded)
    return [
        rule for rule in LIFETIME_ACHIEVEMENTS
        if rule.id not in awarded and rule.is_satisfied(stats)
    ]


def achievement_by_id(achievement_id: str) -> AchievementRule | None:
    """Look up a rule in either table."""
    for rule in ACHIEVEMENTS + LIFETIME_ACHIEVEMENTS:
        if rule.id == achievement_id:
            return rule
    return None
