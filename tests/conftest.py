"""Shared fixtures for the ratio tracker tests.

- StepClock: deterministic timestamps that advance on every read
- tracker: three activities with ratios 1, 2 and 3
- app / client: Flask app on an in-memory SQLite database
- file_app: Flask app on a SQLite file, for tests that run several threads
"""

from datetime import datetime, timedelta, timezone

import pytest

from models import db
from models.activity import Activity
from services.tracker import RatioTracker


class StepClock:
    """Returns `start`, then `start + step`, and so on."""

    def __init__(self, start=None, step=timedelta(minutes=1)):
        self.now = start or datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


# ─────────────────────────────────────────────────────────────────────────────
# Tracker Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def activities():
    return [
        Activity(name="A", ratio=1, color="#FF6B6B"),
        Activity(name="B", ratio=2, color="#4ECDC4"),
        Activity(name="C", ratio=3, color="#45B7D1"),
    ]


@pytest.fixture
def tracker(activities, clock):
    return RatioTracker(activities=activities, clock=clock)


# ─────────────────────────────────────────────────────────────────────────────
# Flask Fixtures
# ─────────────────────────────────────────────────────────────────────────────


def _make_app(seed=False, database_uri="sqlite://"):
    from app import create_app

    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": database_uri,
        "SEED_DEFAULT_ACTIVITIES": seed,
    })


@pytest.fixture
def app():
    app = _make_app()
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def seeded_app():
    app = _make_app(seed=True)
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def file_app(tmp_path):
    """App on a SQLite file, so each thread gets its own connection."""
    app = _make_app(database_uri=f"sqlite:///{tmp_path / 'tracker.db'}")
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()
