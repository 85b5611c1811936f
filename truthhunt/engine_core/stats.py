"""
Statistics - Immutable aggregates that achievement rules read.

GameStats is derived from one finished session's results.
LifetimeStats is the cumulative profile view across sessions.
Neither is stored independently of what it was computed from.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .state import Claim, RoundResult, Verdict, AI_GENERATED_SOURCE, MYTH_PATTERN
from .scoring import calibration_bonus


@dataclass(frozen=True)
class GameStats:
    total_correct: int = 0
    total_incorrect: int = 0
    max_streak: int = 0
    current_streak: int = 0
    ai_caught_correct: int = 0
    humble_correct: int = 0  # confidence 1 and correct
    bold_correct: int = 0  # confidence 3 and correct
    mixed_correct: int = 0
    myths_busted: int = 0
    perfect_game: bool = False
    game_completed: bool = True
    calibration_bonus: bool = False
    comeback: bool = False
    lowest_point: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCorrect": self.total_correct,
            "totalIncorrect": self.total_incorrect,
            "maxStreak": self.max_streak,
            "currentStreak": self.current_streak,
            "aiCaughtCorrect": self.ai_caught_correct,
            "humbleCorrect": self.humble_correct,
            "boldCorrect": self.bold_correct,
            "mixedCorrect": self.mixed_correct,
            "mythsBusted": self.myths_busted,
            "perfectGame": self.perfect_game,
            "gameCompleted": self.game_completed,
            "calibrationBonus": self.calibration_bonus,
            "comeback": self.comeback,
            "lowestPoint": self.lowest_point,
        }


def compute_game_stats(
    results: Iterable[RoundResult],
    claims: Iterable[Claim],
    score: int,
    predicted_score: int,
) -> GameStats:
    """Aggregate a session's round results into GameStats."""
    results = list(results)
    by_id = {c.claim_id: c for c in claims}

    correct = incorrect = 0
    max_streak = streak = 0
    ai_caught = humble = bold = mixed = myths = 0
    running = lowest = 0

    for result in results:
        claim = by_id.get(result.claim_id)
        if result.correct:
            correct += 1
            streak += 1
            max_streak = max(max_streak, streak)
            if result.confidence == 1:
                humble += 1
            if result.confidence == 3:
                bold += 1
            if claim is not None:
                if claim.answer == Verdict.MIXED:
                    mixed += 1
                if claim.source == AI_GENERATED_SOURCE:
                    ai_caught += 1
                if claim.error_pattern == MYTH_PATTERN:
                    myths += 1
        else:
            incorrect += 1
            streak = 0

        running += result.points
        lowest = min(lowest, running)

    return GameStats(
        total_correct=correct,
        total_incorrect=incorrect,
        max_streak=max_streak,
        current_streak=streak,
        ai_caught_correct=ai_caught,
        humble_correct=humble,
        bold_correct=bold,
        mixed_correct=mixed,
        myths_busted=myths,
        perfect_game=bool(results) and correct == len(results),
        game_completed=True,
        calibration_bonus=calibration_bonus(score, predicted_score) > 0,
        comeback=lowest < 0 and score > 0,
        lowest_point=lowest,
    )


@dataclass(frozen=True)
class SubjectStats:
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect


@dataclass(frozen=True)
class LifetimeStats:
    """Cumulative profile statistics used by lifetime rules."""
    total_games: int = 0
    total_rounds: int = 0
    total_correct: int = 0
    total_incorrect: int = 0
    total_points: int = 0
    best_score: int = 0
    best_streak: int = 0
    current_day_streak: int = 0
    total_predictions: int = 0
    calibrated_predictions: int = 0
    high_confidence_correct: int = 0
    high_confidence_incorrect: int = 0
    low_confidence_correct: int = 0
    low_confidence_incorrect: int = 0
    claims_seen: int = 0
    subject_stats: Mapping[str, SubjectStats] = field(default_factory=dict)
