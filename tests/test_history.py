"""Tests for services/history.py"""

from datetime import date, datetime, timedelta, timezone

from models.activity import Activity, ActivityLog
from services.history import activity_for_log, day_label, group_logs_by_day, search_logs


def at(day, hour=12, minute=0):
    return datetime(2026, 5, day, hour, minute, tzinfo=timezone.utc)


class TestSearchLogs:
    """Tests for search_logs()."""

    def test_matches_substring_ignoring_case(self):
        logs = [ActivityLog("Music Making"), ActivityLog("Gaming"), ActivityLog("music")]

        found = search_logs(logs, "MUSIC")

        assert [log.activity_name for log in found] == ["Music Making", "music"]

    def test_blank_text_returns_everything(self):
        logs = [ActivityLog("Gaming"), ActivityLog("Reading")]

        assert search_logs(logs, "") == logs
        assert search_logs(logs, "   ") == logs
        assert search_logs(logs, None) == logs

    def test_no_match(self):
        assert search_logs([ActivityLog("Gaming")], "chess") == []


class TestGroupLogsByDay:
    """Tests for group_logs_by_day()."""

    def test_groups_newest_day_first(self):
        d1_late = ActivityLog("A", at(2, 18))
        d1_early = ActivityLog("B", at(2, 8))
        d2 = ActivityLog("C", at(3, 9))

        groups = group_logs_by_day([d2, d1_late, d1_early])

        assert [day for day, _ in groups] == [date(2026, 5, 3), date(2026, 5, 2)]
        assert groups[1][1] == [d1_late, d1_early]

    def test_uses_given_timezone(self):
        """23:30 UTC is already the next day two hours east."""
        log = ActivityLog("A", at(2, 23, 30))
        plus_two = timezone(timedelta(hours=2))

        assert group_logs_by_day([log])[0][0] == date(2026, 5, 2)
        assert group_logs_by_day([log], tz=plus_two)[0][0] == date(2026, 5, 3)

    def test_empty(self):
        assert group_logs_by_day([]) == []


class TestDayLabel:
    def test_today_and_yesterday(self):
        today = date(2026, 5, 10)

        assert day_label(today, today) == "Today"
        assert day_label(date(2026, 5, 9), today) == "Yesterday"

    def test_older_days_use_medium_date(self):
        assert day_label(date(2026, 3, 4), date(2026, 5, 10)) == "Mar 4, 2026"


class TestActivityForLog:
    def test_finds_by_name(self):
        gaming = Activity(name="Gaming", ratio=1)
        music = Activity(name="Music", ratio=2)

        assert activity_for_log([gaming, music], ActivityLog("Music")) == music

    def test_orphaned_log(self):
        assert activity_for_log([Activity(name="Gaming", ratio=1)], ActivityLog("Chess")) is None
