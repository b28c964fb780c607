"""Shared fixtures for unit tests."""

from __future__ import annotations

from uuid import UUID

import pytest

from featureboard.board.store import InMemoryCardStore

# Standard UUIDs for test references
SAMPLE_OWNER_ID = UUID("87654321-4321-8765-4321-876543218765")
OTHER_OWNER_ID = UUID("12345678-1234-5678-1234-567812345678")


class FakeClock:
    """Manually advanced stand-in for ``time.monotonic``."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def memory_store() -> InMemoryCardStore:
    return InMemoryCardStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
