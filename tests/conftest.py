"""Pytest configuration: repository root on sys.path and shared fixtures."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from chatroom import Settings  # noqa: E402


class FakeClock:
    """Millisecond clock that only moves when told to"""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        inactivity_threshold_seconds=10,
        sweep_interval_seconds=15,
    )


@pytest.fixture
def client(settings, clock):
    from fastapi.testclient import TestClient
    from main import create_app

    app = create_app(settings, clock=clock, run_sweeper=False)
    with TestClient(app) as test_client:
        yield test_client
