"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.core.approval.clock import FixedClock
from backoffice.core.rbac.checker import Actor
from backoffice.db.base import Base
from backoffice.db import models  # noqa: F401  registers tables


@pytest.fixture
def clock():
    """Deterministic clock starting at 2026-10-16 07:00 UTC."""
    return FixedClock(datetime(2026, 10, 16, 7, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def alice():
    """User without approval authority."""
    return Actor(username="alice", roles=frozenset())


@pytest.fixture
def carol():
    """Plain USER role, still without approval authority."""
    return Actor(username="carol", roles=frozenset(["USER"]))


@pytest.fixture
def bob():
    """ADMIN user."""
    return Actor(username="bob", roles=frozenset(["ADMIN"]))


@pytest.fixture
def root():
    """SUPER_ADMIN user."""
    return Actor(username="root", roles=frozenset(["SUPER_ADMIN"]))


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    """Session rolled back after each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
