"""
Tests for cooldown, daily cap and duplicate-location checks
"""
from datetime import datetime, timedelta, timezone

import pytest

from civicpulse.core.exceptions import ConflictError, RateLimitError
from civicpulse.services.abuse_guard import AbuseGuardService
from conftest import add_issue


def local_today(hour):
    return datetime.now().astimezone().replace(hour=hour, minute=0, second=0, microsecond=0)


class TestRateLimit:

    def test_first_report_passes(self, db):
        assert AbuseGuardService(db).check_rate_limit("citizen")["is_rate_limited"] is False

    def test_report_within_cooldown(self, db):
        now = datetime.now(timezone.utc)
        add_issue(db, reported_by="citizen", created_at=now - timedelta(minutes=5))

        result = AbuseGuardService(db).check_rate_limit("citizen", now)

        assert result["is_rate_limited"] is True
        assert result["retry_after_minutes"] == 10
        assert result["message"] == "Please wait 10 minutes before reporting another issue"

    def test_report_after_cooldown(self, db):
        now = datetime.now(timezone.utc)
        add_issue(db, reported_by="citizen", created_at=now - timedelta(minutes=16))
        assert AbuseGuardService(db).check_rate_limit("citizen", now)["is_rate_limited"] is False

    def test_other_reporters_do_not_count(self, db):
        now = datetime.now(timezone.utc)
        add_issue(db, reported_by="someone-else", created_at=now - timedelta(minutes=1))
        assert AbuseGuardService(db).check_rate_limit("citizen", now)["is_rate_limited"] is False


class TestDailyCap:

    def test_sixth_report_rejected(self, db):
        now = local_today(18)
        for i in range(5):
            add_issue(db, reported_by="citizen", created_at=local_today(10 + i), latitude=10 + i)

        result = AbuseGuardService(db).check_daily_cap("citizen", now)

        assert result["is_limited"] is True
        assert result["count"] == 5

    def test_yesterday_does_not_count(self, db):
        now = local_today(18)
        for i in range(5):
            add_issue(db, reported_by="citizen", created_at=local_today(10 + i) - timedelta(days=1))
        assert AbuseGuardService(db).check_daily_cap("citizen", now)["is_limited"] is False

    def test_enforce_raises_daily_limit(self, db):
        now = local_today(18)
        for i in range(5):
            add_issue(db, reported_by="citizen", created_at=local_today(10 + i), latitude=10 + i)

        with pytest.raises(RateLimitError) as exc_info:
            AbuseGuardService(db).enforce("citizen", 40.0, 40.0, now)
        assert exc_info.value.message == "Daily issue limit reached"
        assert exc_info.value.status_code == 429


class TestDuplicateLocation:

    def test_eight_nearby_rejected(self, db):
        for i in range(8):
            add_issue(db, reported_by=f"user{i}", latitude=18.5200 + i * 0.0001, longitude=73.8500)

        with pytest.raises(ConflictError) as exc_info:
            AbuseGuardService(db).enforce("citizen", 18.5200, 73.8500)
        assert exc_info.value.status_code == 409
        assert "Please support existing reports" in exc_info.value.message

    def test_seven_nearby_accepted(self, db):
        for i in range(7):
            add_issue(db, reported_by=f"user{i}", latitude=18.5200, longitude=73.8500)

        result = AbuseGuardService(db).check_duplicate_location(18.5200, 73.8500)

        assert result["is_duplicate"] is False
        assert result["nearby_count"] == 7

    def test_far_issues_ignored(self, db):
        for i in range(8):
            add_issue(db, reported_by=f"user{i}", latitude=18.5200, longitude=74.5)
        assert AbuseGuardService(db).check_duplicate_location(18.5200, 73.8500)["is_duplicate"] is False
