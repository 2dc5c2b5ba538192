from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pcreg.storage import MemoryStorage
from pcreg.store import StateStore


class FakeClock:
    """Deterministic wall clock; call it to read, ``tick`` to move forward."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 8, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def tick(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage, clock: FakeClock) -> StateStore:
    state_store = StateStore(storage, clock=clock)
    state_store.boot()
    return state_store
