"""
Log history helpers for the log screen: search, day grouping and labels.
"""

from datetime import date, timedelta, timezone
from typing import Optional

from models.activity import Activity, ActivityLog


def search_logs(logs, text: Optional[str]) -> list[ActivityLog]:
    """Filter logs whose activity name contains `text`, ignoring case."""
    needle = (text or "").strip().casefold()
    if not needle:
        return list(logs)
    return [log for log in logs if needle in log.activity_name.casefold()]


def group_logs_by_day(logs, tz=timezone.utc) -> list[tuple[date, list[ActivityLog]]]:
    """
    Group logs by calendar day in `tz`.

    Days come newest first; logs inside a day keep the order they were given in.
    """
    groups = {}
    for log in logs:
        day = log.timestamp.astimezone(tz).date()
        groups.setdefault(day, []).append(log)

    return sorted(groups.items(), key=lambda item: item[0], reverse=True)


def day_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{day:%b} {day.day}, {day.year}"


def activity_for_log(activities, log: ActivityLog) -> Optional[Activity]:
    """The activity a log was recorded under, or None if it has been renamed or removed."""
    return next((a for a in activities if a.name == log.activity_name), None)
