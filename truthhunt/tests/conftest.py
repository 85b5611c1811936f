"""
Pytest fixtures for TruthHunt tests.
"""

import asyncio

import pytest

from ..engine_core.action import GameSettings
from ..engine_core.machine import GameSession
from ..engine_core.state import AI_GENERATED_SOURCE, MYTH_PATTERN, Claim, Player, Verdict
from ..storage import MemoryStore, PlayerProfile, SnapshotStore
from ..sync import InlineDispatcher, InMemoryRemoteClient, SyncQueue

HOUR_MS = 60 * 60 * 1000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


class FakeSleep:
    """Records requested sleeps instead of waiting."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def remote() -> InMemoryRemoteClient:
    """A remote client that has completed init()."""
    client = InMemoryRemoteClient()
    asyncio.run(client.init())
    return client


@pytest.fixture
def claims() -> list[Claim]:
    """Five claims with known answers."""
    return [
        Claim("c1", "Claim one", Verdict.TRUE, subject="Science"),
        Claim("c2", "Claim two", Verdict.FALSE, subject="History",
              source=AI_GENERATED_SOURCE, error_pattern=MYTH_PATTERN),
        Claim("c3", "Claim three", Verdict.MIXED, subject="Science"),
        Claim("c4", "Claim four", Verdict.FALSE, subject="Biology",
              source=AI_GENERATED_SOURCE, error_pattern=MYTH_PATTERN),
        Claim("c5", "Claim five", Verdict.TRUE, subject="Biology",
              source=AI_GENERATED_SOURCE),
    ]


@pytest.fixture
def settings(claims) -> GameSettings:
    return GameSettings(
        team_name="Owls",
        claims=claims,
        rounds=5,
        predicted_score=10,
        players=[Player("Ada", "L")],
    )


@pytest.fixture
def snapshots(store, clock) -> SnapshotStore:
    return SnapshotStore(store, clock=clock)


@pytest.fixture
def queue(store, clock) -> SyncQueue:
    return SyncQueue(store, clock=clock)


@pytest.fixture
def profile(store, clock) -> PlayerProfile:
    return PlayerProfile(store, clock=clock)


@pytest.fixture
def game(snapshots, queue, profile, clock) -> GameSession:
    """A state machine whose side effects run inline."""
    session = GameSession(
        snapshots=snapshots,
        queue=queue,
        dispatcher=InlineDispatcher(),
        profile=profile,
        clock=clock,
    )
    yield session
    session.teardown()
