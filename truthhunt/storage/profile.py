"""
Player Profile - Lifetime stats for solo players.

The profile accumulates results across sessions and remembers which
lifetime achievements were already awarded, so each one is announced
only once.
"""

from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Any
import json
import logging

from ..config import PROFILE_KEY, PROFILE_VERSION, PROFILE_RECENT_GAMES
from ..engine_core.achievements import AchievementRule, new_lifetime_achievements
from ..engine_core.state import Session
from ..engine_core.stats import GameStats, LifetimeStats, SubjectStats
from ..timeutil import Clock, now_ms
from .kv import KeyValueStore

logger = logging.getLogger(__name__)


def _default_profile(created_at: int) -> dict[str, Any]:
    return {
        "version": PROFILE_VERSION,
        "createdAt": created_at,
        "lastPlayedAt": None,
        "playerName": "",
        "avatar": None,
        "stats": {
            "totalGames": 0,
            "totalRounds": 0,
            "totalCorrect": 0,
            "totalIncorrect": 0,
            "totalPoints": 0,
            "bestScore": 0,
            "bestStreak": 0,
            "currentDayStreak": 0,
            "lastPlayDate": None,
            "totalPredictions": 0,
            "calibratedPredictions": 0,
            "highConfidenceCorrect": 0,
            "highConfidenceIncorrect": 0,
            "lowConfidenceCorrect": 0,
            "lowConfidenceIncorrect": 0,
        },
        "subjectStats": {},
        "claimsSeen": [],
        "lifetimeAchievements": [],
        "recentGames": [],
    }


class PlayerProfile:
    """
    Persistent profile backed by a key-value store.

    Reads fall back to a default profile; writes report success as a
    boolean. Nothing here raises on storage failure.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = PROFILE_KEY,
        clock: Clock = now_ms,
    ):
        self.store = store
        self.key = key
        self.clock = clock

    def get(self) -> dict[str, Any]:
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning("Failed to load player profile: %s", e)
            return _default_profile(self.clock())
        if not raw:
            return _default_profile(self.clock())
        try:
            profile = json.loads(raw)
        except ValueError as e:
            logger.warning("Player profile unreadable, starting fresh: %s", e)
            return _default_profile(self.clock())
        if not isinstance(profile, dict):
            return _default_profile(self.clock())
        return self._migrate(profile)

    def save(self, profile: dict[str, Any]) -> bool:
        profile["version"] = PROFILE_VERSION
        try:
            self.store.set(self.key, json.dumps(profile))
            return True
        except Exception as e:
            logger.warning("Failed to save player profile: %s", e)
            return False

    def update_identity(self, player_name: str, avatar: str | None = None) -> bool:
        profile = self.get()
        profile["playerName"] = player_name
        profile["avatar"] = avatar
        return self.save(profile)

    def lifetime_stats(self, profile: dict[str, Any] | None = None) -> LifetimeStats:
        """Project the stored profile onto the immutable LifetimeStats value."""
        profile = profile or self.get()
        s = profile["stats"]
        return LifetimeStats(
            total_games=s["totalGames"],
            total_rounds=s["totalRounds"],
            total_correct=s["totalCorrect"],
            total_incorrect=s["totalIncorrect"],
            total_points=s["totalPoints"],
            best_score=s["bestScore"],
            best_streak=s["bestStreak"],
            current_day_streak=s["currentDayStreak"],
            total_predictions=s["totalPredictions"],
            calibrated_predictions=s["calibratedPredictions"],
            high_confidence_correct=s["highConfidenceCorrect"],
            high_confidence_incorrect=s["highConfidenceIncorrect"],
            low_confidence_correct=s["lowConfidenceCorrect"],
            low_confidence_incorrect=s["lowConfidenceIncorrect"],
            claims_seen=len(profile["claimsSeen"]),
            subject_stats={
                name: SubjectStats(correct=v.get("correct", 0), incorrect=v.get("incorrect", 0))
                for name, v in profile["subjectStats"].items()
            },
        )

    def record_game(
        self,
        session: Session,
        stats: GameStats,
        final_score: int,
    ) -> list[AchievementRule]:
        """
        Fold a finished session into the profile.

        Returns the lifetime achievements earned for the first time.
        """
        profile = self.get()
        now = self.clock()
        today = datetime.fromtimestamp(now / 1000).date()
        s = profile["stats"]

        profile["lastPlayedAt"] = now
        s["currentDayStreak"] = self._next_day_streak(
            s.get("lastPlayDate"), s.get("currentDayStreak", 0), today
        )
        s["lastPlayDate"] = today.isoformat()

        results = session.team.results
        s["totalGames"] += 1
        s["totalRounds"] += len(results)
        s["totalCorrect"] += stats.total_correct
        s["totalIncorrect"] += stats.total_incorrect
        s["totalPoints"] += final_score
        s["bestScore"] = max(s["bestScore"], final_score)
        s["bestStreak"] = max(s["bestStreak"], stats.max_streak)
        s["totalPredictions"] += 1
        if stats.calibration_bonus:
            s["calibratedPredictions"] += 1

        claims = {c.claim_id: c for c in session.claims}
        seen = set(profile["claimsSeen"])
        for result in results:
            if result.confidence == 3:
                key = "highConfidenceCorrect" if result.correct else "highConfidenceIncorrect"
                s[key] += 1
            elif result.confidence == 1:
                key = "lowConfidenceCorrect" if result.correct else "lowConfidenceIncorrect"
                s[key] += 1

            claim = claims.get(result.claim_id)
            if claim and claim.subject:
                subject = profile["subjectStats"].setdefault(
                    claim.subject, {"correct": 0, "incorrect": 0}
                )
                subject["correct" if result.correct else "incorrect"] += 1
            seen.add(result.claim_id)
        profile["claimsSeen"] = sorted(seen)

        profile["recentGames"] = (
            [{
                "playedAt": now,
                "score": final_score,
                "rounds": len(results),
                "correct": stats.total_correct,
                "difficulty": session.difficulty,
            }] + profile["recentGames"]
        )[:PROFILE_RECENT_GAMES]

        new_rules = new_lifetime_achievements(
            self.lifetime_stats(profile), profile["lifetimeAchievements"]
        )
        profile["lifetimeAchievements"].extend(rule.id for rule in new_rules)

        self.save(profile)
        return new_rules

    def reset(self) -> bool:
        try:
            self.store.remove(self.key)
            return True
        except Exception as e:
            logger.warning("Failed to reset player profile: %s", e)
            return False

    @staticmethod
    def _next_day_streak(last_play: str | None, current: int, today: date) -> int:
        if not last_play:
            return 1
        try:
            last = date.fromisoformat(last_play)
        except ValueError:
            return 1
        if last == today:
            return max(current, 1)
        if last == today - timedelta(days=1):
            return current + 1
        return 1

    def _migrate(self, profile: dict[str, Any]) -> dict[str, Any]:
        """
        Fill in any fields an older profile is missing.

        Fields with the wrong type are reset to their defaults, so a
        hand-edited or corrupted profile can still record games.
        """
        created_at = profile.get("createdAt")
        merged = _default_profile(created_at if _is_count(created_at) else self.clock())

        repaired = []
        for key, value in profile.items():
            if key in ("stats", "createdAt"):
                continue
            default = merged.get(key)
            if isinstance(default, (list, dict)) and not isinstance(value, type(default)):
                repaired.append(key)
                continue
            merged[key] = value

        stats = profile.get("stats")
        if not isinstance(stats, dict):
            if stats is not None:
                repaired.append("stats")
            stats = {}
        for key, value in stats.items():
            if key == "lastPlayDate":
                valid = value is None or isinstance(value, str)
            else:
                valid = _is_count(value) or key not in merged["stats"]
            if valid:
                merged["stats"][key] = value
            else:
                repaired.append(f"stats.{key}")

        merged["claimsSeen"] = [c for c in merged["claimsSeen"] if isinstance(c, str)]
        merged["lifetimeAchievements"] = [
            a for a in merged["lifetimeAchievements"] if isinstance(a, str)
        ]
        merged["subjectStats"] = {
            name: {
                "correct": v.get("correct") if _is_count(v.get("correct")) else 0,
                "incorrect": v.get("incorrect") if _is_count(v.get("incorrect")) else 0,
            }
            for name, v in merged["subjectStats"].items()
            if isinstance(v, dict)
        }

        if repaired:
            logger.warning("Player profile had invalid fields, reset to defaults: %s", repaired)
        return merged


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
