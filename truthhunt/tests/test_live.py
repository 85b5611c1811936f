"""
Tests for the best-effort live progress publisher and background dispatch.
"""

import asyncio

from ..engine_core.state import GamePhase, Player, Session, Team
from ..sync.dispatch import InlineDispatcher, ThreadedDispatcher
from ..sync.live import LiveProgress, LiveProgressPublisher
from ..sync.remote import InMemoryRemoteClient


def _progress() -> LiveProgress:
    session = Session.initial("s-1")._copy_with(
        phase=GamePhase.PLAYING,
        current_round=3,
        total_rounds=5,
        team=Team(name="Owls", score=4, players=(Player("Ada", "L"),)),
    )
    return LiveProgress.from_session(session)


class TestLiveProgress:
    """Tests for the live progress record."""

    def test_wire_shape(self):
        data = _progress().to_dict()
        assert data["teamName"] == "Owls"
        assert data["currentRound"] == 3
        assert data["currentScore"] == 4
        assert data["players"] == [{"firstName": "Ada", "lastInitial": "L"}]
        assert data["isActive"] is True


class TestPublisher:
    """Tests for LiveProgressPublisher."""

    def test_publish(self, remote):
        publisher = LiveProgressPublisher(remote)
        assert asyncio.run(publisher.publish("s-1", _progress())) is True
        assert remote.live_sessions["s-1"]["teamName"] == "Owls"

    def test_publish_failure_is_swallowed(self, remote):
        remote.online = False
        publisher = LiveProgressPublisher(remote)
        assert asyncio.run(publisher.publish("s-1", _progress())) is False

    def test_disabled_without_ready_remote(self):
        publisher = LiveProgressPublisher(InMemoryRemoteClient())
        assert publisher.enabled is False
        assert asyncio.run(publisher.remove("s-1")) is False

    def test_remove_retries_then_succeeds(self, remote, fake_sleep):
        remote.live_sessions["s-1"] = {}
        remote.fail_removals = 2
        publisher = LiveProgressPublisher(remote, sleep=fake_sleep)

        assert asyncio.run(publisher.remove("s-1")) is True
        assert remote.calls.count("remove_live_session") == 3
        assert fake_sleep.calls == [0.2, 0.2]
        assert "s-1" not in remote.live_sessions

    def test_remove_gives_up_after_three_attempts(self, remote, fake_sleep):
        lost = []
        remote.fail_removals = 10
        publisher = LiveProgressPublisher(remote, sleep=fake_sleep, on_cleanup_lost=lost.append)

        assert asyncio.run(publisher.remove("s-1")) is False
        assert remote.calls.count("remove_live_session") == 3
        assert len(fake_sleep.calls) == 2
        assert lost == ["s-1"]

    def test_remove_exceptions_use_the_same_budget(self, remote, fake_sleep):
        remote.online = False
        publisher = LiveProgressPublisher(remote, max_attempts=2, sleep=fake_sleep)

        assert asyncio.run(publisher.remove("s-1")) is False
        assert remote.calls.count("remove_live_session") == 2

    def test_finish_publishes_then_removes(self, remote, fake_sleep):
        publisher = LiveProgressPublisher(remote, sleep=fake_sleep)
        asyncio.run(publisher.finish("s-1", _progress()))

        assert remote.calls[-2:] == ["upsert_live_session", "remove_live_session"]
        assert "s-1" not in remote.live_sessions


class TestDispatch:
    """Tests for the fire-and-forget dispatchers."""

    def test_inline_runs_plain_and_async_jobs(self):
        ran = []

        async def job():
            ran.append("async")

        dispatcher = InlineDispatcher()
        dispatcher.submit(lambda: ran.append("plain"))
        dispatcher.submit(job)

        assert ran == ["plain", "async"]

    def test_inline_swallows_job_errors(self):
        def boom():
            raise RuntimeError("boom")

        InlineDispatcher().submit(boom)

    def test_closed_dispatcher_drops_jobs(self):
        ran = []
        dispatcher = InlineDispatcher()
        dispatcher.close()
        dispatcher.submit(lambda: ran.append(1))
        assert ran == []

    def test_threaded_runs_in_order(self):
        ran = []

        async def slow(n):
            await asyncio.sleep(0.01)
            ran.append(n)

        dispatcher = ThreadedDispatcher()
        try:
            dispatcher.submit(lambda: slow(1))
            dispatcher.submit(lambda: ran.append(2))
            dispatcher.submit(lambda: slow(3))
            assert dispatcher.drain(timeout=5)
        finally:
            dispatcher.close(timeout=5)

        assert ran == [1, 2, 3]
        assert dispatcher.alive is False
