"""Test studio holiday lookups."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from app.services.holidays import HolidayService


class TestHolidayService:
    def test_new_year_is_holiday(self):
        assert HolidayService.is_holiday(date(2030, 1, 1), "US")
        assert HolidayService.is_holiday(date(2030, 1, 1), "us")

    def test_regular_day_is_not_holiday(self):
        assert not HolidayService.is_holiday(date(2030, 1, 8), "US")

    def test_no_country_means_no_holidays(self):
        assert not HolidayService.is_holiday(date(2030, 1, 1), None)
        assert HolidayService.holiday_blackouts(
            None, date(2030, 1, 1), date(2030, 1, 2), ZoneInfo("UTC")
        ) == []

    def test_unsupported_country_is_ignored(self):
        assert not HolidayService.is_holiday(date(2030, 1, 1), "ZZ")

    def test_blackouts_cover_local_day(self):
        blackouts = HolidayService.holiday_blackouts(
            "US", date(2029, 12, 31), date(2030, 1, 2), ZoneInfo("America/New_York")
        )

        assert len(blackouts) == 1
        assert blackouts[0].start == datetime(2030, 1, 1, 5, tzinfo=timezone.utc)
        assert blackouts[0].end == datetime(2030, 1, 2, 5, tzinfo=timezone.utc)
