"""
Leaderboard - Finished games kept on this device.

Stored as a JSON array of game records under one key. Only the most
recent LEADERBOARD_MAX_ENTRIES games are kept. Reading drops entries
that lost their score or timestamp and writes the cleaned list back;
an unreadable list is cleared.
"""

from __future__ import annotations
from typing import Any
import json
import logging
import math
import re
import uuid

from ..config import LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_KEY, LEADERBOARD_MAX_ENTRIES
from ..timeutil import Clock, now_ms
from .kv import KeyValueStore

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 50

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def clean_name(text: Any, max_length: int = NAME_MAX_LENGTH) -> str:
    """Trim, cap and strip control characters from a user-entered name."""
    if not isinstance(text, str):
        return ""
    return _CONTROL_CHARS.sub("", text.strip()[:max_length])


def player_display_name(first_name: str, last_initial: str) -> str:
    first = (first_name or "").strip()
    initial = (last_initial or "").strip()[:1].upper()
    if not first:
        return "Anonymous"
    return f"{first} {initial}." if initial else first


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
    )


class Leaderboard:
    """
    Local leaderboard backed by a key-value store.

    Usage:
        board = Leaderboard(store)
        board.save(record)
        for entry in board.top_teams(limit=5):
            print(entry["teamName"], entry["score"])

    Entries are ranked on "score", the final (bonused) game score.
    Nothing here raises on storage failure.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = LEADERBOARD_KEY,
        clock: Clock = now_ms,
        max_entries: int = LEADERBOARD_MAX_ENTRIES,
    ):
        self.store = store
        self.key = key
        self.clock = clock
        self.max_entries = max_entries

    def get_all(self) -> list[dict[str, Any]]:
        """All valid entries in insertion order."""
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning("Failed to load leaderboard: %s", e)
            return []
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            logger.warning("Leaderboard unreadable, clearing: %s", e)
            self.clear()
            return []
        if not isinstance(parsed, list):
            logger.warning("Leaderboard data is not a list, clearing")
            self.clear()
            return []

        entries = [self._repair(entry) for entry in parsed if self._is_valid(entry)]
        if len(entries) != len(parsed):
            logger.warning("Removed %d corrupted leaderboard entries", len(parsed) - len(entries))
            self._write(entries)
        return entries

    def save(self, record: dict[str, Any]) -> bool:
        """Add a finished game. Returns False if it could not be stored."""
        now = self.clock()
        players = [p for p in record.get("players") or [] if isinstance(p, dict)]
        entry = {
            **record,
            "teamName": clean_name(record.get("teamName")) or "Team",
            "players": [
                {
                    "firstName": clean_name(p.get("firstName")),
                    "lastInitial": clean_name(p.get("lastInitial")),
                    "displayName": clean_name(
                        player_display_name(p.get("firstName"), p.get("lastInitial"))
                    ),
                }
                for p in players
            ],
            "id": f"game_{now}_{uuid.uuid4().hex[:9]}",
            "timestamp": now,
        }
        entries = self.get_all()
        entries.append(entry)
        return self._write(entries[-self.max_entries:])

    def top_teams(self, limit: int = LEADERBOARD_DEFAULT_LIMIT) -> list[dict[str, Any]]:
        return sorted(self.get_all(), key=lambda e: e["score"], reverse=True)[:limit]

    def top_players(self, limit: int = LEADERBOARD_DEFAULT_LIMIT) -> list[dict[str, Any]]:
        """
        Players ranked by their best game score.

        Every player on a team is credited with the team's score. Names
        are matched case-insensitively on first name and last initial.
        """
        players: dict[str, dict[str, Any]] = {}
        for entry in self.get_all():
            for player in entry["players"]:
                key = f"{player['firstName']}_{player['lastInitial']}".lower()
                totals = players.setdefault(key, {
                    "displayName": player_display_name(player["firstName"], player["lastInitial"]),
                    "totalScore": 0,
                    "gamesPlayed": 0,
                    "bestScore": 0,
                })
                totals["totalScore"] += entry["score"]
                totals["gamesPlayed"] += 1
                totals["bestScore"] = max(totals["bestScore"], entry["score"])

        ranked = [
            {**totals, "avgScore": round(totals["totalScore"] / totals["gamesPlayed"])}
            for totals in players.values()
        ]
        ranked.sort(key=lambda p: p["bestScore"], reverse=True)
        return ranked[:limit]

    def recent(self, limit: int = LEADERBOARD_DEFAULT_LIMIT) -> list[dict[str, Any]]:
        return sorted(self.get_all(), key=lambda e: e["timestamp"], reverse=True)[:limit]

    def stats(self) -> dict[str, Any]:
        entries = self.get_all()
        if not entries:
            return {"totalGames": 0, "averageScore": 0, "highestScore": 0, "averageAccuracy": 0}
        total_accuracy = sum(
            e["accuracy"] if _is_number(e.get("accuracy")) else 0 for e in entries
        )
        return {
            "totalGames": len(entries),
            "averageScore": round(sum(e["score"] for e in entries) / len(entries)),
            "highestScore": max(e["score"] for e in entries),
            "averageAccuracy": total_accuracy / len(entries),
        }

    def clear(self):
        try:
            self.store.remove(self.key)
        except Exception as e:
            logger.warning("Failed to clear leaderboard: %s", e)

    def _write(self, entries: list[dict[str, Any]]) -> bool:
        try:
            self.store.set(self.key, json.dumps(entries))
            return True
        except Exception as e:
            logger.warning("Failed to save leaderboard: %s", e)
            return False

    @staticmethod
    def _is_valid(entry: Any) -> bool:
        return (
            isinstance(entry, dict)
            and _is_number(entry.get("score"))
            and _is_number(entry.get("timestamp"))
        )

    @staticmethod
    def _repair(entry: dict[str, Any]) -> dict[str, Any]:
        """Default a missing team name and drop malformed players."""
        if not isinstance(entry.get("teamName"), str):
            entry["teamName"] = "Unknown Team"
        players = entry.get("players")
        entry["players"] = [
            p for p in (players if isinstance(players, list) else [])
            if isinstance(p, dict)
            and isinstance(p.get("firstName"), str)
            and isinstance(p.get("lastInitial"), str)
        ]
        return entry
