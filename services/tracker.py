"""
Ratio tracking engine.

Given the user's activities (each with a relative ratio) and the log of
what was actually done, compute how many times each activity should have
happened so far and suggest the one that has fallen furthest behind.

Logs reference activities by name, not id. Renaming an activity therefore
orphans its earlier logs: they still count towards the total but match no
activity.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from models.activity import Activity, ActivityCount, ActivityLog
from services.activity_config import is_valid_color
from services.errors import InvalidActivity, NotFound

ACTIVITIES = "activities"
LOGS = "logs"


def validate_activity(activity: Activity) -> None:
    """Raise InvalidActivity unless name, ratio and colour are usable."""
    if not isinstance(activity.name, str) or not activity.name.strip():
        raise InvalidActivity("Activity name must not be empty")
    # bool is an int subclass but never a meaningful ratio
    if (
        not isinstance(activity.ratio, int)
        or isinstance(activity.ratio, bool)
        or activity.ratio <= 0
    ):
        raise InvalidActivity(
            f"Ratio for '{activity.name}' must be a positive integer (got {activity.ratio!r})"
        )
    if not is_valid_color(activity.color):
        raise InvalidActivity(
            f"Color for '{activity.name}' must be a #RRGGBB hex string (got {activity.color!r})"
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RatioTracker:
    """Owns the activity and log collections and answers ratio queries."""

    def __init__(
        self,
        activities: Iterable[Activity] = (),
        logs: Iterable[ActivityLog] = (),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._activities = list(activities)
        self._logs = list(logs)
        self._clock = clock or _utc_now
        self._listeners = []

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def activities(self) -> tuple:
        return tuple(self._activities)

    @property
    def logs(self) -> tuple:
        return tuple(self._logs)

    @property
    def total_logs(self) -> int:
        return len(self._logs)

    def subscribe(self, listener: Callable[[tuple], None]) -> Callable[[], None]:
        """
        Register a listener called once per mutation with the tuple of
        collections it changed, e.g. ("logs",) or ("activities", "logs").
        Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, *collections: str) -> None:
        for listener in list(self._listeners):
            listener(collections)

    def find_activity(self, activity_id: str) -> Activity:
        return self._activities[self._activity_index(activity_id)]

    def _activity_index(self, activity_id: str) -> int:
        for i, activity in enumerate(self._activities):
            if activity.id == activity_id:
                return i
        raise NotFound("Activity", activity_id)

    # ── Activity management ───────────────────────────────────────────────

    def add_activity(self, activity: Activity) -> Activity:
        validate_activity(activity)
        if any(a.id == activity.id for a in self._activities):
            raise InvalidActivity(f"Activity id '{activity.id}' already exists")

        self._activities.append(activity)
        self._notify(ACTIVITIES)
        return activity

    def update_activity(self, activity: Activity) -> Activity:
        """Replace the activity with the same id, keeping its position."""
        validate_activity(activity)
        index = self._activity_index(activity.id)

        self._activities[index] = activity
        self._notify(ACTIVITIES)
        return activity

    def remove_activity(self, activity_id: str) -> Activity:
        """Remove an activity and every log recorded under its name."""
        index = self._activity_index(activity_id)
        removed = self._activities.pop(index)
        self._logs = [log for log in self._logs if log.activity_name != removed.name]

        self._notify(ACTIVITIES, LOGS)
        return removed

    # ── Logging ───────────────────────────────────────────────────────────

    def log_activity(self, name: str) -> ActivityLog:
        """
        Record one occurrence of `name` at the current time.

        The name is not checked against current activities; an unknown name
        produces a log that appears in no activity's count.
        """
        log = ActivityLog(activity_name=name, timestamp=self._clock())
        self._logs.append(log)
        self._notify(LOGS)
        return log

    def remove_log(self, log_id: str) -> ActivityLog:
        for i, log in enumerate(self._logs):
            if log.id == log_id:
                removed = self._logs.pop(i)
                self._notify(LOGS)
                return removed
        raise NotFound("Log", log_id)

    def purge_all_logs(self) -> None:
        self._logs = []
        self._notify(LOGS)

    # ── Analytics and suggestions ─────────────────────────────────────────

    def get_activity_counts(self) -> list[ActivityCount]:
        """
        Per-activity count, proportional target and share of all logs.

        Targets round up: ceil(total_logs * ratio / total_ratio). An activity
        is therefore never on target before it has fully caught up, and every
        activity has a target of at least 1 once anything has been logged.
        """
        total_ratio = sum(a.ratio for a in self._activities)
        total_logs = len(self._logs)

        tally = {}
        for log in self._logs:
            tally[log.activity_name] = tally.get(log.activity_name, 0) + 1

        result = []
        for activity in self._activities:
            count = tally.get(activity.name, 0)
            if total_logs > 0 and total_ratio > 0:
                # Integer ceiling division, exact for any size
                target_count = -(-total_logs * activity.ratio // total_ratio)
                percentage = count / total_logs * 100
            else:
                target_count = 0
                percentage = 0.0

            result.append(
                ActivityCount(
                    activity=activity,
                    count=count,
                    target_count=target_count,
                    percentage=percentage,
                )
            )

        return result

    def get_suggested_activity(self) -> Optional[Activity]:
        """
        The activity with the largest deficit, earliest in order on ties.

        Returns None when there are no activities or every deficit is 0;
        use is_balanced() to tell those two cases apart.
        """
        counts = self.get_activity_counts()

        # Stable sort: equal deficits keep activity order
        counts.sort(key=lambda c: c.deficit, reverse=True)

        if not counts or counts[0].deficit == 0:
            return None
        return counts[0].activity

    def is_balanced(self) -> bool:
        """True when there are activities and none of them is behind."""
        counts = self.get_activity_counts()
        return bool(counts) and all(c.deficit == 0 for c in counts)

    def get_recent_logs(self, limit: int = 50) -> list[ActivityLog]:
        """Up to `limit` logs, most recent first."""
        ordered = sorted(self._logs, key=lambda log: log.timestamp, reverse=True)
        return ordered[: max(0, limit)]
