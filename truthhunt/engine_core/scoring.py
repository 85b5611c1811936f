"""
Scoring Engine - Points, hint deductions and the calibration bonus.

All functions are pure. Net round points have no floor or ceiling.

Points table:
    confidence   correct   incorrect
        1           +1         -1
        2           +2         -1
        3           +3         -2
"""

from __future__ import annotations
import math

from ..config import HINT_COST, CALIBRATION_TOLERANCE, CALIBRATION_BONUS
from .state import Claim, RoundResult
from .action import RoundSubmission


POINTS_TABLE: dict[tuple[bool, int], int] = {
    (True, 1): 1,
    (True, 2): 2,
    (True, 3): 3,
    (False, 1): -1,
    (False, 2): -1,
    (False, 3): -2,
}


def compute_points(correct: bool, confidence: int) -> int:
    """Base points for an answer at a confidence level."""
    return POINTS_TABLE[(bool(correct), confidence)]


def hint_deduction(hints_used: int, cost: int = HINT_COST) -> int:
    return hints_used * cost


def net_points(correct: bool, confidence: int, hints_used: int) -> int:
    """Base points minus the hint deduction. May be negative."""
    return compute_points(correct, confidence) - hint_deduction(hints_used)


def calibration_bonus(actual_score: int, predicted_score: int) -> int:
    """
    Bonus for predicting the final score closely.

    A difference of exactly CALIBRATION_TOLERANCE still earns the bonus.
    """
    if abs(actual_score - predicted_score) <= CALIBRATION_TOLERANCE:
        return CALIBRATION_BONUS
    return 0


def final_score(actual_score: int, predicted_score: int) -> int:
    return actual_score + calibration_bonus(actual_score, predicted_score)


def accuracy_percent(correct: int, total: int) -> int:
    """Accuracy as a whole percentage, halves rounded up."""
    if total <= 0:
        return 0
    return math.floor(correct * 100 / total + 0.5)


def score_round(
    claim: Claim,
    submission: RoundSubmission,
    round_number: int,
) -> RoundResult:
    """
    Score one submission against its claim.

    This is the only place RoundResult records are created.
    """
    correct = submission.verdict == claim.answer
    hints = len(submission.hints_used)
    return RoundResult(
        claim_id=claim.claim_id,
        team_verdict=submission.verdict,
        confidence=submission.confidence,
        correct=correct,
        points=net_points(correct, submission.confidence, hints),
        hints_used=hints,
        round=round_number,
        reasoning=submission.reasoning,
    )
