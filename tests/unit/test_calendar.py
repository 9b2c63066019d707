"""
Unit tests for clinic calendar resolution.
"""

from datetime import date, datetime, timedelta, timezone

from frontdesk.services.calendar import (
    clinic_datetime,
    clinic_day_of,
    clinic_today,
    format_day,
)


class TestClinicToday:
    """'Today' follows the clinic timezone, not the server's."""

    def test_midday(self, berlin):
        now = datetime(2026, 3, 10, 11, 0, tzinfo=timezone.utc)
        assert clinic_today(berlin, now) == date(2026, 3, 10)

    def test_just_after_midnight_in_berlin(self, berlin):
        """23:30 UTC in winter is already the next day in Berlin."""
        now = datetime(2026, 1, 15, 23, 30, tzinfo=timezone.utc)
        assert clinic_today(berlin, now) == date(2026, 1, 16)

    def test_summer_time_offset(self, berlin):
        """In summer Berlin is UTC+2: 22:30 UTC is already tomorrow."""
        now = datetime(2026, 7, 1, 22, 30, tzinfo=timezone.utc)
        assert clinic_today(berlin, now) == date(2026, 7, 2)

    def test_just_before_midnight_in_berlin(self, berlin):
        now = datetime(2026, 1, 15, 22, 59, tzinfo=timezone.utc)
        assert clinic_today(berlin, now) == date(2026, 1, 15)

    def test_naive_reference_is_utc(self, berlin):
        now = datetime(2026, 1, 15, 23, 30)
        assert clinic_today(berlin, now) == date(2026, 1, 16)

    def test_other_offsets_are_converted(self, berlin):
        """An instant given in New York time is still resolved in Berlin."""
        new_york = timezone(timedelta(hours=-5))
        now = datetime(2026, 1, 15, 19, 0, tzinfo=new_york)
        assert clinic_today(berlin, now) == date(2026, 1, 16)

    def test_defaults_to_configured_timezone(self):
        """Without arguments the result is a date (uses settings)."""
        assert isinstance(clinic_today(), date)


class TestClinicHelpers:
    """Test the remaining calendar helpers."""

    def test_day_of_instant(self, berlin):
        moment = datetime(2026, 3, 9, 23, 15, tzinfo=timezone.utc)
        assert clinic_day_of(moment, berlin) == date(2026, 3, 10)

    def test_clinic_datetime_is_aware(self, berlin):
        start = clinic_datetime(date(2026, 3, 10), 8, 30, tz=berlin)
        assert start.tzinfo is not None
        assert start.hour == 8
        assert start.minute == 30
        assert start.utcoffset() == timedelta(hours=1)

    def test_format_day(self):
        assert format_day(date(2026, 3, 5)) == "2026-03-05"
