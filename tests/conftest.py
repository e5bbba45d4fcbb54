"""
Pytest configuration shared across the FeedQ test suite.

Every test that touches storage gets its own SQLite file under tmp_path,
selected through FEEDQ_DB_PATH, and a fresh connection pool.
"""

from __future__ import annotations

import pytest

from feedq.activity import ActivityManager, ActivityService, FilesExtension, StaticUserSession
from feedq.infrastructure.database import init_database, reset_pool
from feedq.observability import telemetry

NOW = 1_700_000_000


class FakeClock:
    """Deterministic stand-in for time.time."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_telemetry():
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Initialized empty database for one test."""
    db_path = tmp_path / "feedq.db"
    monkeypatch.setenv("FEEDQ_DB_PATH", str(db_path))
    reset_pool()
    init_database()
    yield db_path
    reset_pool()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager():
    activity_manager = ActivityManager()
    activity_manager.register_extension(FilesExtension())
    return activity_manager


@pytest.fixture
def make_service(db, manager, clock):
    """Factory for services acting as a given user (None = anonymous)."""

    def _make(user: str | None = None) -> ActivityService:
        return ActivityService(manager, StaticUserSession(user), clock=clock)

    return _make
