"""
Tests for the lifetime player profile.
"""

import json

from ..config import PROFILE_KEY
from ..engine_core.state import GamePhase, RoundResult, Session, Team, Verdict
from ..engine_core.stats import compute_game_stats
from ..storage import PlayerProfile
from .conftest import HOUR_MS

DAY_MS = 24 * HOUR_MS


def _finished(claims, correct=(True, True, False), confidence=3) -> Session:
    results = tuple(
        RoundResult(
            claim_id=claims[i].claim_id,
            team_verdict=claims[i].answer if ok else Verdict.MIXED,
            confidence=confidence,
            correct=ok,
            points=3 if ok else -2,
            hints_used=0,
            round=i + 1,
        )
        for i, ok in enumerate(correct)
    )
    return Session.initial("s-1")._copy_with(
        phase=GamePhase.DEBRIEF,
        current_round=len(results),
        total_rounds=len(results),
        claims=tuple(claims),
        team=Team(name="Ada", score=sum(r.points for r in results), predicted_score=4, results=results),
    )


def _record(profile, session):
    team = session.team
    stats = compute_game_stats(team.results, session.claims, team.score, team.predicted_score)
    return profile.record_game(session, stats, team.score)


class TestRecordGame:
    """Tests for PlayerProfile.record_game."""

    def test_totals_accumulate(self, profile, claims):
        _record(profile, _finished(claims))
        _record(profile, _finished(claims, correct=(True, True, True)))

        stats = profile.lifetime_stats()
        assert stats.total_games == 2
        assert stats.total_rounds == 6
        assert stats.total_correct == 5
        assert stats.total_incorrect == 1
        assert stats.best_score == 9
        assert stats.high_confidence_correct == 5
        assert stats.claims_seen == 3

    def test_subject_stats(self, profile, claims):
        _record(profile, _finished(claims))

        stats = profile.lifetime_stats()
        assert stats.subject_stats["Science"].correct == 1
        assert stats.subject_stats["Science"].incorrect == 1
        assert stats.subject_stats["History"].correct == 1

    def test_lifetime_achievement_announced_once(self, profile, claims):
        first = [rule.id for rule in _record(profile, _finished(claims))]
        second = [rule.id for rule in _record(profile, _finished(claims))]

        assert "lifetime-first-game" in first
        assert "lifetime-first-game" not in second
        assert "lifetime-first-game" in profile.get()["lifetimeAchievements"]

    def test_recent_games_are_capped(self, profile, claims):
        for _ in range(12):
            _record(profile, _finished(claims))
        assert len(profile.get()["recentGames"]) == 10


class TestDayStreak:
    """Tests for the consecutive-day streak."""

    def test_consecutive_days(self, profile, claims, clock):
        _record(profile, _finished(claims))
        clock.advance(DAY_MS)
        _record(profile, _finished(claims))
        assert profile.lifetime_stats().current_day_streak == 2

    def test_same_day_keeps_streak(self, profile, claims):
        _record(profile, _finished(claims))
        _record(profile, _finished(claims))
        assert profile.lifetime_stats().current_day_streak == 1

    def test_gap_restarts_streak(self, profile, claims, clock):
        _record(profile, _finished(claims))
        clock.advance(DAY_MS)
        _record(profile, _finished(claims))
        clock.advance(3 * DAY_MS)
        _record(profile, _finished(claims))
        assert profile.lifetime_stats().current_day_streak == 1


class TestStorage:
    """Tests for storage failures and migration."""

    def test_unavailable_store_reads_default(self, profile, store):
        store.available = False
        assert profile.lifetime_stats().total_games == 0
        assert profile.update_identity("Ada") is False

    def test_record_survives_unavailable_store(self, profile, store, claims):
        store.available = False
        rules = _record(profile, _finished(claims))
        assert "lifetime-first-game" in [rule.id for rule in rules]

    def test_old_profile_is_filled_in(self, store, clock):
        store.set(PROFILE_KEY, json.dumps({"stats": {"totalGames": 4}}))
        profile = PlayerProfile(store, clock=clock)

        data = profile.get()
        assert data["stats"]["totalGames"] == 4
        assert data["stats"]["bestStreak"] == 0
        assert data["claimsSeen"] == []

    def test_wrong_typed_fields_are_repaired(self, store, clock, claims):
        store.set(PROFILE_KEY, json.dumps({
            "stats": {"totalGames": None, "bestScore": "high", "totalCorrect": 7, "lastPlayDate": 3},
            "claimsSeen": "c1",
            "subjectStats": {"Science": 5, "History": {"correct": "x", "incorrect": 2}},
            "lifetimeAchievements": None,
            "recentGames": {},
        }))
        profile = PlayerProfile(store, clock=clock)

        data = profile.get()
        assert data["stats"]["totalGames"] == 0
        assert data["stats"]["bestScore"] == 0
        assert data["stats"]["totalCorrect"] == 7
        assert data["stats"]["lastPlayDate"] is None
        assert data["claimsSeen"] == []
        assert data["subjectStats"] == {"History": {"correct": 0, "incorrect": 2}}
        assert data["lifetimeAchievements"] == []
        assert data["recentGames"] == []

        _record(profile, _finished(claims))
        assert profile.lifetime_stats().total_games == 1

    def test_non_object_stats_are_reset(self, store, clock):
        store.set(PROFILE_KEY, json.dumps({"stats": [1, 2]}))
        assert PlayerProfile(store, clock=clock).get()["stats"]["totalGames"] == 0

    def test_reset(self, profile, store, claims):
        _record(profile, _finished(claims))
        assert profile.reset() is True
        assert PROFILE_KEY not in store
