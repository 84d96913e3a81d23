"""Shared fixtures: a controllable clock and engines over throwaway stores."""

from datetime import datetime, timedelta, timezone

import pytest

from chatguard.engine import Engine
from chatguard.logger import configure_logging
from chatguard.store.memory import MemoryDocumentStore

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    configure_logging("WARNING")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def engine(store, clock):
    eng = Engine(store, clock=clock)
    yield eng
    eng.close()
