"""
Tests for the local leaderboard.
"""

import json

import pytest

from ..config import LEADERBOARD_KEY
from ..storage import Leaderboard
from ..storage.leaderboard import clean_name, player_display_name


@pytest.fixture
def leaderboard(store, clock) -> Leaderboard:
    return Leaderboard(store, clock=clock)


def _record(team="Owls", score=10, accuracy=80, players=(("Ada", "L"),)):
    return {
        "teamName": team,
        "score": score,
        "accuracy": accuracy,
        "players": [{"firstName": first, "lastInitial": initial} for first, initial in players],
    }


class TestSave:
    """Tests for Leaderboard.save."""

    def test_entry_gets_id_and_timestamp(self, leaderboard, clock):
        assert leaderboard.save(_record()) is True

        entry = leaderboard.get_all()[0]
        assert entry["id"].startswith(f"game_{clock()}_")
        assert entry["timestamp"] == clock()
        assert entry["players"] == [{"firstName": "Ada", "lastInitial": "L", "displayName": "Ada L."}]

    def test_names_are_cleaned(self, leaderboard):
        leaderboard.save(_record(team="  Owls\x07  ", players=(("  Bo\n", "k"),)))

        entry = leaderboard.get_all()[0]
        assert entry["teamName"] == "Owls"
        assert entry["players"][0]["firstName"] == "Bo"
        assert entry["players"][0]["displayName"] == "Bo K."

    def test_blank_team_name_defaults(self, leaderboard):
        leaderboard.save(_record(team="   "))
        assert leaderboard.get_all()[0]["teamName"] == "Team"

    def test_keeps_only_most_recent_entries(self, store, clock):
        board = Leaderboard(store, clock=clock, max_entries=3)
        for score in range(5):
            board.save(_record(score=score))

        assert [e["score"] for e in board.get_all()] == [2, 3, 4]

    def test_unavailable_store_returns_false(self, leaderboard, store):
        store.available = False
        assert leaderboard.save(_record()) is False
        assert leaderboard.get_all() == []


class TestQueries:
    """Tests for ranking and statistics."""

    def test_top_teams_by_score(self, leaderboard):
        for team, score in (("Owls", 5), ("Herons", 12), ("Crows", 8)):
            leaderboard.save(_record(team=team, score=score))

        assert [e["teamName"] for e in leaderboard.top_teams(limit=2)] == ["Herons", "Crows"]

    def test_recent_newest_first(self, leaderboard, clock):
        leaderboard.save(_record(team="Owls"))
        clock.advance(1000)
        leaderboard.save(_record(team="Herons"))

        assert [e["teamName"] for e in leaderboard.recent()] == ["Herons", "Owls"]

    def test_top_players_share_team_score(self, leaderboard):
        leaderboard.save(_record(score=10, players=(("Ada", "L"), ("Bo", "K"))))
        leaderboard.save(_record(score=4, players=(("ada", "l"),)))

        players = leaderboard.top_players()
        assert players[0]["displayName"] == "Ada L."
        assert players[0]["gamesPlayed"] == 2
        assert players[0]["totalScore"] == 14
        assert players[0]["bestScore"] == 10
        assert players[0]["avgScore"] == 7
        assert players[1]["displayName"] == "Bo K."

    def test_stats(self, leaderboard):
        leaderboard.save(_record(score=10, accuracy=100))
        leaderboard.save(_record(score=5, accuracy=50))

        assert leaderboard.stats() == {
            "totalGames": 2,
            "averageScore": 8,
            "highestScore": 10,
            "averageAccuracy": 75.0,
        }

    def test_empty_stats(self, leaderboard):
        assert leaderboard.stats()["totalGames"] == 0


class TestCorruption:
    """Tests for recovering from damaged leaderboard data."""

    def test_unreadable_data_is_cleared(self, leaderboard, store):
        store.set(LEADERBOARD_KEY, "{not json")
        assert leaderboard.get_all() == []
        assert LEADERBOARD_KEY not in store

    def test_non_list_is_cleared(self, leaderboard, store):
        store.set(LEADERBOARD_KEY, json.dumps({"score": 1}))
        assert leaderboard.get_all() == []
        assert LEADERBOARD_KEY not in store

    def test_bad_entries_are_dropped_and_written_back(self, leaderboard, store):
        store.set(LEADERBOARD_KEY, json.dumps([
            {"score": 3, "timestamp": 1, "teamName": 7, "players": [{"firstName": "Ada"}, "Bo"]},
            {"score": "high", "timestamp": 2},
            "junk",
        ]))

        entries = leaderboard.get_all()
        assert len(entries) == 1
        assert entries[0]["teamName"] == "Unknown Team"
        assert entries[0]["players"] == []
        assert len(json.loads(store.get(LEADERBOARD_KEY))) == 1

    def test_non_finite_scores_are_dropped(self, leaderboard, store):
        store.set(LEADERBOARD_KEY, '[{"score": Infinity, "timestamp": 1}, {"score": 2, "timestamp": NaN}]')
        assert leaderboard.get_all() == []


class TestNames:
    """Tests for name helpers."""

    def test_display_name(self):
        assert player_display_name("Ada", "lovelace") == "Ada L."
        assert player_display_name("Ada", "") == "Ada"
        assert player_display_name("  ", "L") == "Anonymous"

    def test_clean_name_caps_length(self):
        assert clean_name("x" * 80) == "x" * 50
        assert clean_name(None) == ""
