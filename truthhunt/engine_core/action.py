"""
Session Inputs and Outcomes - What callers hand to the state machine
and what they get back.

Inputs:
1. GameSettings - everything needed to leave setup
2. RoundSubmission - one team answer for the current claim

Outcomes:
- RoundOutcome for every submitted round
- DebriefSummary once the last round is scored
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from ..config import DEFAULT_ROUNDS
from .state import Claim, Player, Verdict, Difficulty, RoundResult, Session

if TYPE_CHECKING:
    from .stats import GameStats


VALID_CONFIDENCE = (1, 2, 3)


@dataclass(frozen=True)
class GameSettings:
    """Settings chosen before the first round."""
    team_name: str
    claims: Sequence[Claim]
    rounds: int = DEFAULT_ROUNDS
    predicted_score: int = 0
    difficulty: str = Difficulty.MIXED.value
    avatar: str | None = None
    players: Sequence[Player] = ()


@dataclass(frozen=True)
class RoundSubmission:
    """
    A team's answer for the current round.

    hints_used lists the hints revealed; each one costs points.
    """
    verdict: Verdict
    confidence: int
    hints_used: tuple[str, ...] = ()
    reasoning: str | None = None

    def __post_init__(self):
        if self.confidence not in VALID_CONFIDENCE:
            raise ValueError(
                f"Invalid confidence value: {self.confidence}. Must be 1, 2, or 3."
            )
        if not isinstance(self.verdict, Verdict):
            object.__setattr__(self, "verdict", Verdict(self.verdict))
        object.__setattr__(self, "hints_used", tuple(self.hints_used))


@dataclass
class DebriefSummary:
    """
    Derived end-of-game values.

    final_score is for display only; the session keeps the raw score.
    """
    raw_score: int
    predicted_score: int
    calibration_bonus: int
    final_score: int
    accuracy: int
    achievement_ids: list[str] = field(default_factory=list)
    stats: GameStats | None = None
    new_lifetime_achievements: list[str] = field(default_factory=list)


@dataclass
class RoundOutcome:
    """Result of submitting one round."""
    result: RoundResult
    streak: int
    session: Session
    debrief: DebriefSummary | None = None

    @property
    def finished(self) -> bool:
        return self.debrief is not None
