"""
Session State - The canonical quiz session record.

Design principles:
- Immutable: every change produces a whole new Session (no torn reads)
- Serializable: to_dict()/from_dict() use the persisted camelCase shape
- Phase-ordered: setup -> playing -> debrief -> [reset] -> setup
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
import uuid

from ..config import DEFAULT_ROUNDS


class GamePhase(Enum):
    """High-level session phases."""
    SETUP = "setup"
    PLAYING = "playing"
    DEBRIEF = "debrief"


class Verdict(str, Enum):
    """Possible answers to a claim."""
    TRUE = "TRUE"
    FALSE = "FALSE"
    MIXED = "MIXED"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    MIXED = "mixed"


# Claim sources / error patterns that feed achievement stats
AI_GENERATED_SOURCE = "ai-generated"
MYTH_PATTERN = "Myth perpetuation"


@dataclass(frozen=True)
class Claim:
    """
    A claim the team must judge.

    Content selection lives outside the engine; the engine only
    needs the answer plus the metadata used for statistics.
    """
    claim_id: str
    text: str
    answer: Verdict
    difficulty: str = Difficulty.MEDIUM.value
    subject: str = ""
    source: str = ""
    error_pattern: str | None = None
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.claim_id,
            "text": self.text,
            "answer": self.answer.value,
            "difficulty": self.difficulty,
            "subject": self.subject,
            "source": self.source,
            "errorPattern": self.error_pattern,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Claim:
        return cls(
            claim_id=str(data["id"]),
            text=data.get("text", ""),
            answer=Verdict(data["answer"]),
            difficulty=data.get("difficulty") or Difficulty.MEDIUM.value,
            subject=data.get("subject") or "",
            source=data.get("source") or "",
            error_pattern=data.get("errorPattern"),
            explanation=data.get("explanation") or "",
        )


@dataclass(frozen=True)
class Player:
    first_name: str
    last_initial: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"firstName": self.first_name, "lastInitial": self.last_initial}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        return cls(
            first_name=data.get("firstName", ""),
            last_initial=data.get("lastInitial", ""),
        )


@dataclass(frozen=True)
class RoundResult:
    """
    Outcome of one submitted round.

    Created only by the scoring step of round submission and never
    modified afterwards.
    """
    claim_id: str
    team_verdict: Verdict
    confidence: int
    correct: bool
    points: int
    hints_used: int
    round: int
    reasoning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "claimId": self.claim_id,
            "teamVerdict": self.team_verdict.value,
            "confidence": self.confidence,
            "correct": self.correct,
            "points": self.points,
            "hintsUsed": self.hints_used,
            "reasoning": self.reasoning,
            "round": self.round,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoundResult:
        return cls(
            claim_id=str(data["claimId"]),
            team_verdict=Verdict(data["teamVerdict"]),
            confidence=int(data["confidence"]),
            correct=bool(data["correct"]),
            points=int(data["points"]),
            hints_used=int(data.get("hintsUsed", 0)),
            round=int(data.get("round", 0)),
            reasoning=data.get("reasoning"),
        )


@dataclass(frozen=True)
class Team:
    """The team playing the session."""
    name: str = ""
    score: int = 0
    predicted_score: int = 0
    results: tuple[RoundResult, ...] = ()
    avatar: str | None = None
    players: tuple[Player, ...] = ()

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.correct)

    def _copy_with(self, **kwargs) -> Team:
        return replace(self, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "predictedScore": self.predicted_score,
            "results": [r.to_dict() for r in self.results],
            "avatar": self.avatar,
            "players": [p.to_dict() for p in self.players],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Team:
        return cls(
            name=data.get("name", ""),
            score=int(data.get("score", 0)),
            predicted_score=int(data.get("predictedScore", 0)),
            results=tuple(RoundResult.from_dict(r) for r in data.get("results", [])),
            avatar=data.get("avatar"),
            players=tuple(Player.from_dict(p) for p in data.get("players", [])),
        )


@dataclass(frozen=True)
class Session:
    """
    Complete session state at a point in time.

    This is the canonical state owned by the state machine.
    Readers always see a consistent record because updates replace
    the whole object.
    """
    session_id: str
    phase: GamePhase = GamePhase.SETUP
    current_round: int = 0
    total_rounds: int = DEFAULT_ROUNDS
    claims: tuple[Claim, ...] = ()
    current_claim: Claim | None = None
    difficulty: str = Difficulty.MIXED.value
    team: Team = field(default_factory=Team)

    @classmethod
    def initial(cls, session_id: str | None = None) -> Session:
        """A fresh, zeroed session in the setup phase."""
        return cls(session_id=session_id or str(uuid.uuid4()))

    @property
    def is_last_round(self) -> bool:
        return self.current_round >= self.total_rounds

    def claim_for_round(self, round_number: int) -> Claim | None:
        """Claim for a 1-based round, or None when out of bounds."""
        index = round_number - 1
        if 0 <= index < len(self.claims):
            return self.claims[index]
        return None

    def _copy_with(self, **kwargs) -> Session:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "phase": self.phase.value,
            "currentRound": self.current_round,
            "totalRounds": self.total_rounds,
            "claims": [c.to_dict() for c in self.claims],
            "currentClaim": self.current_claim.to_dict() if self.current_claim else None,
            "difficulty": self.difficulty,
            "team": self.team.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        current = data.get("currentClaim")
        return cls(
            session_id=data.get("sessionId") or str(uuid.uuid4()),
            phase=GamePhase(data.get("phase", GamePhase.SETUP.value)),
            current_round=int(data["currentRound"]),
            total_rounds=int(data["totalRounds"]),
            claims=tuple(Claim.from_dict(c) for c in data["claims"]),
            current_claim=Claim.from_dict(current) if current else None,
            difficulty=data.get("difficulty") or Difficulty.MIXED.value,
            team=Team.from_dict(data["team"]),
        )
