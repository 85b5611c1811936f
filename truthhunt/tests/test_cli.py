"""
Tests for the console CLI.
"""

import argparse

import pytest

from ..cli import cmd_leaderboard, cmd_play, cmd_status, main
from ..engine_core.state import GamePhase, Session, Team
from ..storage import FileStore, SnapshotStore


def _args(data_dir, rounds=3):
    return argparse.Namespace(data_dir=data_dir, rounds=rounds, difficulty="mixed", seed=1)


def _scripted(*answers):
    """An input function that replays answers, then behaves like a closed stdin."""
    remaining = list(answers)

    def input_fn(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return input_fn


class TestPlay:
    """Tests for cmd_play."""

    def test_full_game(self, tmp_path, capsys):
        cmd_play(_args(tmp_path), _scripted("Owls", "Ada", "2", "t", "1", "f", "2", "m", "3"))

        out = capsys.readouterr().out
        assert "Round 1/3" in out
        assert "Round 3/3" in out
        assert "=== Debrief ===" in out
        assert "Result queued for sync (1 pending)" in out

    def test_invalid_answers_are_asked_again(self, tmp_path, capsys):
        cmd_play(_args(tmp_path, rounds=1), _scripted("Owls", "", "x", "0", "maybe", "t", "5", "2"))

        out = capsys.readouterr().out
        assert "Please enter a whole number" in out
        assert "Please answer one of" in out
        assert "=== Debrief ===" in out

    def test_interrupted_game_is_saved_and_resumed(self, tmp_path, capsys):
        cmd_play(_args(tmp_path), _scripted("Owls", "", "0", "t", "2"))
        assert "Game saved" in capsys.readouterr().out

        cmd_status(_args(tmp_path))
        assert "Saved game: Owls, round 2/3" in capsys.readouterr().out

        cmd_play(_args(tmp_path), _scripted("y", "t", "1", "t", "1"))
        out = capsys.readouterr().out
        assert "Saved game found: Owls, round 2/3" in out
        assert "Round 1/3" not in out
        assert "=== Debrief ===" in out

    def test_declining_resume_starts_fresh(self, tmp_path, capsys):
        cmd_play(_args(tmp_path), _scripted("Owls", "", "0", "t", "2"))
        capsys.readouterr()

        cmd_play(_args(tmp_path), _scripted("n", "Herons", "", "0"))
        out = capsys.readouterr().out
        assert "Round 1/3" in out

    def test_too_many_rounds(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            cmd_play(_args(tmp_path, rounds=40), _scripted("Owls", "", "0"))
        assert "Not enough content" in capsys.readouterr().out


class TestStatus:
    """Tests for cmd_status."""

    def test_empty(self, tmp_path, capsys):
        cmd_status(_args(tmp_path))
        out = capsys.readouterr().out
        assert "No saved game" in out
        assert "Sync queue empty" in out

    def test_pending_queue(self, tmp_path, capsys):
        cmd_play(_args(tmp_path, rounds=1), _scripted("Owls", "", "0", "t", "1"))
        capsys.readouterr()

        cmd_status(_args(tmp_path))
        assert "Pending sync: 1 game" in capsys.readouterr().out


class TestMain:
    """Tests for argument handling."""

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit):
            main([])
        assert "usage: truthhunt" in capsys.readouterr().out

    def test_status_command(self, tmp_path, capsys):
        main(["--data-dir", str(tmp_path), "status"])
        assert "No saved game" in capsys.readouterr().out


class TestLeaderboard:
    """Tests for cmd_leaderboard."""

    def test_empty(self, tmp_path, capsys):
        cmd_leaderboard(argparse.Namespace(data_dir=tmp_path, limit=10))
        assert "No games on the leaderboard yet" in capsys.readouterr().out

    def test_finished_game_is_listed(self, tmp_path, capsys):
        cmd_play(_args(tmp_path, rounds=1), _scripted("Owls", "Ada", "0", "t", "1"))
        capsys.readouterr()

        main(["--data-dir", str(tmp_path), "leaderboard", "--limit", "3"])
        out = capsys.readouterr().out
        assert "=== Top Teams ===" in out
        assert " 1. Owls" in out
        assert " 1. Ada " in out
        assert "1 game(s)" in out


class TestShortDeck:
    """Tests for a resumed game that runs out of claims."""

    def test_stops_when_no_claim_is_left(self, tmp_path, capsys, claims):
        short = Session.initial("s-1")._copy_with(
            phase=GamePhase.PLAYING,
            current_round=1,
            total_rounds=3,
            claims=(claims[0],),
            current_claim=claims[0],
            team=Team(name="Owls"),
        )
        SnapshotStore(FileStore(tmp_path)).save(short)

        cmd_play(_args(tmp_path), _scripted("y", "t", "1"))
        out = capsys.readouterr().out
        assert "Round 1/3" in out
        assert "No claim is available for this round" in out

        cmd_status(_args(tmp_path))
        assert "No saved game" in capsys.readouterr().out
