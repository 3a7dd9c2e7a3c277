"""Tests for the activity logger and configuration."""

import pytest

from church_ledger.audit import ActivityLogger
from church_ledger.config import AppSettings, get_settings
from church_ledger.models.activity import ActivityAction, ActivitySeverity
from church_ledger.reports.formatting import format_currency, format_percent, or_placeholder


class TestActivityLogger:
    """Structured activity trail."""

    @pytest.mark.asyncio
    async def test_record_event(self):
        activity = ActivityLogger()
        event = await activity.record(
            user_id="u1",
            user_email="treasurer@example.org",
            action=ActivityAction.CREATE_MEMBER,
            collection_name="members",
            record_id="m-1",
            details='Added member "Jane Doe".',
        )
        assert event is not None
        assert activity.recent() == [event]

    @pytest.mark.asyncio
    async def test_missing_user_skips_event(self):
        activity = ActivityLogger()
        event = await activity.record(user_id=None, user_email=None, action=ActivityAction.DELETE_MEMBER)
        assert event is None
        assert activity.recent() == []

    @pytest.mark.asyncio
    async def test_details_truncated(self):
        activity = ActivityLogger()
        event = await activity.record(
            user_id="u1",
            user_email="treasurer@example.org",
            action=ActivityAction.UPDATE_ACCOUNT,
            details="x" * 800,
            severity=ActivitySeverity.WARNING,
        )
        assert len(event.details) == 500

    @pytest.mark.asyncio
    async def test_invalid_event_does_not_raise(self):
        activity = ActivityLogger()
        event = await activity.record(user_id="u1", user_email="treasurer@example.org", action="not-an-action")
        assert event is None
        assert activity.recent() == []

    @pytest.mark.asyncio
    async def test_logging_failure_does_not_raise(self):
        """Test that a broken log sink still keeps the event in the buffer."""
        failures = []

        class BrokenLogger:
            def info(self, *args, **kwargs):
                raise RuntimeError("log sink unavailable")

            def error(self, event_name, **kwargs):
                failures.append((event_name, kwargs["error"]))

        activity = ActivityLogger()
        activity._logger = BrokenLogger()
        event = await activity.record(
            user_id="u1",
            user_email="treasurer@example.org",
            action=ActivityAction.CREATE_MEMBER,
            record_id="m-1",
        )
        assert activity.recent() == [event]
        assert failures == [("activity_log_failed", "log sink unavailable")]

    @pytest.mark.asyncio
    async def test_buffer_bounded_newest_first(self):
        activity = ActivityLogger(buffer_size=2)
        for record_id in ("a", "b", "c"):
            await activity.record(
                user_id="u1",
                user_email="treasurer@example.org",
                action=ActivityAction.CREATE_MEMBER,
                record_id=record_id,
            )
        assert [event.record_id for event in activity.recent()] == ["c", "b"]


class TestSettings:
    """pydantic-settings configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("LEDGER_CURRENCY", "LEDGER_LEGACY_BUDGET_YEAR", "LEDGER_DASHBOARD_YEARS"):
            monkeypatch.delenv(name, raising=False)
        settings = AppSettings(_env_file=None)
        assert settings.currency == "XAF"
        assert settings.legacy_budget_year == 2024
        assert settings.dashboard_years == 5

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LEDGER_CURRENCY", "usd")
        monkeypatch.setenv("LEDGER_LEGACY_BUDGET_YEAR", "2023")
        settings = AppSettings(_env_file=None)
        assert settings.currency == "USD"
        assert settings.legacy_budget_year == 2023

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestFormatting:
    """Display helpers."""

    def test_currency(self):
        assert format_currency(600000) == "600,000 XAF"
        assert format_currency(None, "USD") == "0 USD"

    def test_percent_and_placeholder(self):
        assert format_percent(8.333) == "8.3%"
        assert or_placeholder("") == "N/A"
        assert or_placeholder("ENEO") == "ENEO"
