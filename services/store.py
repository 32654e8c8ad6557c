"""
Persistence for the tracker.

Activities and logs are stored as two independent JSON lists in the
stored_collections table, one row per key. Loading is fail-soft: a missing,
undecodable or invalid document becomes an empty collection.

Each row carries a version. A tracker remembers the versions it loaded and
refuses to overwrite a collection someone else has written since
(StaleCollection). Routes that mutate wrap their whole load-mutate-save
cycle in locked_tracker() so that requests within one process never race.
"""

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

from models import db
from models.activity import Activity, ActivityLog
from models.stored_collection import StoredCollection
from services.activity_config import DEFAULT_ACTIVITIES
from services.errors import StaleCollection
from services.tracker import ACTIVITIES, LOGS, RatioTracker, validate_activity

ACTIVITIES_KEY = "SavedActivities"
LOGS_KEY = "SavedActivityLogs"

_KEYS = {ACTIVITIES: ACTIVITIES_KEY, LOGS: LOGS_KEY}

_write_lock = threading.Lock()


def _row(key: str) -> Optional[StoredCollection]:
    return StoredCollection.query.filter_by(key=key).populate_existing().first()


# ── Loading ──────────────────────────────────────────────────────────────


def stored_activity(data: dict) -> Activity:
    activity = Activity.from_dict(data)
    validate_activity(activity)
    return activity


def stored_log(data: dict) -> ActivityLog:
    log = ActivityLog.from_dict(data)
    if not isinstance(log.activity_name, str):
        raise TypeError(f"activity_name must be a string (got {log.activity_name!r})")
    return log


def load_versioned(key: str, factory: Callable[[dict], object]) -> tuple[list, int]:
    """Decode the collection under `key` along with its stored version."""
    row = _row(key)
    if row is None:
        return [], 0

    try:
        data = db.session.execute(
            db.select(StoredCollection.payload).filter_by(key=key)
        ).scalar_one()
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON list, got {type(data).__name__}")
        return [factory(item) for item in data], row.version
    except (ValueError, KeyError, TypeError) as e:
        print(f"[store] Could not decode {key}, starting empty: {e}")
        return [], row.version


def load_collection(key: str, factory: Callable[[dict], object]) -> list:
    """Decode the collection stored under `key`, or [] if absent or unreadable."""
    return load_versioned(key, factory)[0]


def load_activities() -> list[Activity]:
    return load_collection(ACTIVITIES_KEY, stored_activity)


def load_logs() -> list[ActivityLog]:
    return load_collection(LOGS_KEY, stored_log)


# ── Saving ───────────────────────────────────────────────────────────────


def save_collection(key: str, items, expected_version: Optional[int] = None) -> int:
    """
    Write `items` under `key` (not yet committed) and return the new version.

    With `expected_version`, the write only goes through if the stored row is
    still at that version; otherwise StaleCollection is raised.
    """
    payload = [item.to_dict() for item in items]

    row = _row(key)
    if row is None:
        if expected_version:
            raise StaleCollection(key, expected_version, 0)
        db.session.add(StoredCollection(key=key, payload=payload, version=1))
        return 1

    version = row.version if expected_version is None else expected_version
    result = db.session.execute(
        db.update(StoredCollection)
        .where(StoredCollection.key == key, StoredCollection.version == version)
        .values(
            payload=payload,
            version=version + 1,
            updated_at=datetime.now(timezone.utc),
        )
    )
    if result.rowcount == 0:
        raise StaleCollection(key, version, _row(key).version)
    return version + 1


# ── Trackers ─────────────────────────────────────────────────────────────


def load_tracker(clock: Optional[Callable] = None) -> RatioTracker:
    """
    Build a tracker from storage that writes back after every mutation.

    All collections touched by one mutation are saved in a single commit;
    if any save fails, nothing is written.
    """
    activities, activities_version = load_versioned(ACTIVITIES_KEY, stored_activity)
    logs, logs_version = load_versioned(LOGS_KEY, stored_log)
    versions = {ACTIVITIES_KEY: activities_version, LOGS_KEY: logs_version}

    tracker = RatioTracker(activities=activities, logs=logs, clock=clock)

    def persist(collections: tuple):
        saved = {}
        try:
            for collection in collections:
                key = _KEYS[collection]
                items = tracker.activities if collection == ACTIVITIES else tracker.logs
                saved[key] = save_collection(key, items, versions[key])
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        versions.update(saved)

    tracker.subscribe(persist)
    return tracker


@contextmanager
def locked_tracker(clock: Optional[Callable] = None):
    """Load a tracker and hold the write lock until the block exits."""
    with _write_lock:
        yield load_tracker(clock)


def seed_default_activities() -> list[Activity]:
    """
    First-run bootstrap: store the default activities if none are stored.

    Returns the seeded activities, or [] when activities already existed.
    """
    with _write_lock:
        if load_activities():
            return []

        seeded = [Activity(**defaults) for defaults in DEFAULT_ACTIVITIES]
        save_collection(ACTIVITIES_KEY, seeded)
        db.session.commit()

    print(f"[store] Seeded {len(seeded)} default activities")
    return seeded
