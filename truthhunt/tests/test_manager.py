"""
Tests for hosting many sessions in one process.
"""

import asyncio
import dataclasses

import pytest

from ..engine_core.action import RoundSubmission
from ..engine_core.state import GamePhase, Verdict
from ..session import SessionManager, SessionState, snapshot_key
from ..sync import InlineDispatcher


@pytest.fixture
def manager(store, remote, clock):
    manager = SessionManager(store=store, remote=remote, dispatcher=InlineDispatcher(), clock=clock)
    yield manager
    manager.close()


class TestSessionManager:
    """Tests for SessionManager."""

    def test_create_session(self, manager):
        hosted = manager.create_session()

        assert hosted.is_active()
        assert hosted.game.session.phase == GamePhase.SETUP
        assert hosted.game.session_id == hosted.session_id
        assert manager.get_session(hosted.session_id) is hosted
        assert manager.list_active_sessions() == [hosted.session_id]

    def test_create_with_existing_id_returns_same(self, manager):
        first = manager.create_session("room-1")
        assert manager.create_session("room-1") is first

    def test_sessions_snapshot_under_their_own_key(self, manager, store, settings):
        first = manager.create_session("a")
        second = manager.create_session("b")
        first.game.start_game(settings)

        assert snapshot_key("a") in store
        assert snapshot_key("b") not in store
        assert second.game.session.phase == GamePhase.SETUP

    def test_sessions_share_the_queue(self, manager, settings):
        for session_id in ("a", "b"):
            game = manager.create_session(session_id).game
            game.start_game(settings)
            for answer in (Verdict.TRUE, Verdict.FALSE, Verdict.MIXED, Verdict.FALSE, Verdict.TRUE):
                game.submit_round(RoundSubmission(answer, 1))

        assert manager.queue.get_counts() == {"game": 2}

        result = asyncio.run(manager.sync_queue())
        assert result.success == 2
        assert manager.queue.size() == 0

    def test_network_recovered_flushes_and_notifies(self, manager, remote):
        messages = []
        manager.queue.set_notifier(lambda message, level: messages.append(level))
        remote.online = False
        manager.queue.enqueue("reflection", {"reflectionResponse": "ok"})
        asyncio.run(manager.sync_queue())

        remote.online = True
        result = asyncio.run(manager.network_recovered())

        assert result.success == 1
        assert messages == ["success"]

    def test_end_session(self, manager):
        hosted = manager.create_session()

        assert manager.end_session(hosted.session_id) is True
        assert hosted.state == SessionState.COMPLETED
        assert hosted.game.alive is False
        assert manager.get_session(hosted.session_id) is None
        assert manager.end_session(hosted.session_id) is False

    def test_end_keeps_snapshot_for_restore(self, manager, settings):
        game = manager.create_session("room-1").game
        game.start_game(settings)
        game.submit_round(RoundSubmission(Verdict.TRUE, 2))
        manager.end_session("room-1", reason="disconnect")

        restored = manager.restore_session("room-1")

        assert restored is not None
        assert restored.game.session.current_round == 2
        assert restored.game.streak == 1

    def test_restore_without_snapshot(self, manager):
        assert manager.restore_session("nothing-saved") is None
        assert manager.get_session("nothing-saved") is None

    def test_cleanup_stale_sessions(self, manager):
        old = manager.create_session("old")
        manager.create_session("new")
        old.created_at -= 7200

        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert old.state == SessionState.ABANDONED
        assert manager.list_active_sessions() == ["new"]

    def test_sessions_share_the_leaderboard(self, manager, settings):
        for session_id, team in (("a", "Owls"), ("b", "Herons")):
            game = manager.create_session(session_id).game
            game.start_game(dataclasses.replace(settings, team_name=team))
            for answer in (Verdict.TRUE, Verdict.FALSE, Verdict.MIXED, Verdict.FALSE, Verdict.TRUE):
                game.submit_round(RoundSubmission(answer, 1))

        assert {e["teamName"] for e in manager.leaderboard.get_all()} == {"Owls", "Herons"}
