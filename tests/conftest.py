"""
Pytest fixtures for the test suite.

Access-layer tests run against an InMemoryStorage and a controllable clock.
Data-layer tests use an in-memory SQLite engine, one fresh engine per test.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from portal.access import AccessPortal, InMemoryStorage, RecordingAuditSink, load_access_config
from portal.db.session import build_engine


ACCESS_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "access_config.yaml"
TEST_DB_URL = "sqlite://"


class FakeClock:
    """Frozen clock; advance it explicitly."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, ms: int) -> None:
        self.now = self.now + timedelta(milliseconds=ms)


@pytest.fixture(scope="session")
def access_config():
    return load_access_config(ACCESS_CONFIG_PATH)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def make_portal(storage, access_config, audit_sink, clock):
    """Build an AccessPortal over the shared storage (call again to simulate a reload)."""

    def _make() -> AccessPortal:
        return AccessPortal(storage, access_config, audit_sink=audit_sink, clock=clock)

    return _make


@pytest.fixture
def portal(make_portal):
    return make_portal()


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return build_engine(TEST_DB_URL)


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from portal.db.init_db import init_db
    init_db(engine)
    return engine


@pytest.fixture
def session_factory(tables):
    return sessionmaker(bind=tables, autocommit=False, autoflush=False, class_=Session)
