"""
Config defaults must be safe for production and the activity clock must
respect the configured day boundary.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from tracker_api.config import Settings
from tracker_api.services.clock import day_key


class TestConfigDefaults:

    def test_session_cookie_secure_defaults_true(self, monkeypatch):
        monkeypatch.setenv("PGPASSWORD", "test")
        monkeypatch.delenv("SESSION_COOKIE_SECURE", raising=False)
        assert Settings(_env_file=None).SESSION_COOKIE_SECURE is True

    def test_password_required(self, monkeypatch):
        monkeypatch.delenv("PGPASSWORD", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_database_url(self, monkeypatch):
        monkeypatch.setenv("PGPASSWORD", "secret")
        monkeypatch.setenv("PGHOST", "db")
        s = Settings(_env_file=None)
        assert s.database_url == "postgresql://tracker:secret@db:5432/tracker"

    def test_cors_origins_list(self, monkeypatch):
        monkeypatch.setenv("PGPASSWORD", "test")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        assert Settings(_env_file=None).cors_origins_list == ["http://a.test", "http://b.test"]

    def test_activity_defaults(self, monkeypatch):
        monkeypatch.setenv("PGPASSWORD", "test")
        monkeypatch.delenv("ACTIVITY_TIMEZONE", raising=False)
        s = Settings(_env_file=None)
        assert s.ACTIVITY_TIMEZONE == "UTC"
        assert s.ACTIVITY_RETENTION_DAYS == 365
        assert s.CALENDAR_WINDOW_DAYS == 364


    @pytest.mark.parametrize("zone", ["Mars/Olympus_Mons", "not a zone"])
    def test_unknown_timezone_rejected(self, monkeypatch, zone):
        monkeypatch.setenv("PGPASSWORD", "test")
        monkeypatch.setenv("ACTIVITY_TIMEZONE", zone)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_configured_timezone_accepted(self, monkeypatch):
        monkeypatch.setenv("PGPASSWORD", "test")
        monkeypatch.setenv("ACTIVITY_TIMEZONE", "Europe/Madrid")
        assert Settings(_env_file=None).ACTIVITY_TIMEZONE == "Europe/Madrid"


class TestDayKey:

    def test_utc_boundary(self):
        late = datetime(2024, 3, 15, 23, 30, tzinfo=timezone.utc)
        assert day_key(late, ZoneInfo("UTC")) == date(2024, 3, 15)

    def test_configured_zone_shifts_day(self):
        late = datetime(2024, 3, 15, 23, 30, tzinfo=timezone.utc)
        assert day_key(late, ZoneInfo("Asia/Tokyo")) == date(2024, 3, 16)
        assert day_key(late, ZoneInfo("America/New_York")) == date(2024, 3, 15)

    def test_naive_treated_as_utc(self):
        assert day_key(datetime(2024, 3, 15, 1, 0), ZoneInfo("America/Los_Angeles")) == date(2024, 3, 14)

    def test_date_passthrough(self):
        assert day_key(date(2024, 3, 15)) == date(2024, 3, 15)
