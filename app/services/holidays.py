from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

import holidays
import structlog

from app.utils.intervals import Interval

logger = structlog.get_logger(__name__)


class HolidayService:
    """Public holiday calendar lookups for studios that close on holidays.

    Uses the `holidays` library; a studio opts in by setting its
    ``holiday_country`` to an ISO 3166 alpha-2 code.
    """

    @staticmethod
    @lru_cache(maxsize=32)
    def _calendar(country: str, year: int) -> Optional[holidays.HolidayBase]:
        try:
            return holidays.country_holidays(country, years=year)
        except NotImplementedError:
            logger.warning("Unsupported holiday country", country=country)
            return None

    @classmethod
    def is_holiday(cls, d: date, country: Optional[str]) -> bool:
        if not country:
            return False
        d = d.date() if isinstance(d, datetime) else d
        cal = cls._calendar(country.upper(), d.year)
        return cal is not None and d in cal

    @classmethod
    def holiday_blackouts(
        cls, country: Optional[str], start_date: date, end_date: date, tz: ZoneInfo
    ) -> list[Interval]:
        """Whole local days between ``start_date`` and ``end_date`` (inclusive)
        that are public holidays, as UTC intervals."""
        blackouts = []
        current = start_date
        while current <= end_date:
            if cls.is_holiday(current, country):
                day_start = datetime.combine(current, time.min, tzinfo=tz)
                day_end = datetime.combine(current + timedelta(days=1), time.min, tzinfo=tz)
                blackouts.append(
                    Interval(
                        day_start.astimezone(timezone.utc),
                        day_end.astimezone(timezone.utc),
                    )
                )
            current += timedelta(days=1)
        return blackouts
