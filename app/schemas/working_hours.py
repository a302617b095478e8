from datetime import date, datetime, time, timezone
from typing import Iterable
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.working_hours import WeekDay
from app.utils.intervals import Interval
from app.utils.validation import HHMM_PATTERN


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class TimeRange(BaseModel):
    """Time-of-day interval ``[start, end)`` in 24h ``HH:MM``."""

    model_config = ConfigDict(frozen=True)

    start: str = Field(..., pattern=HHMM_PATTERN)
    end: str = Field(..., pattern=HHMM_PATTERN)

    @model_validator(mode="after")
    def validate_order(self):
        if self.start_time >= self.end_time:
            raise ValueError(f"start ({self.start}) must be before end ({self.end})")
        return self

    @property
    def start_time(self) -> time:
        return parse_hhmm(self.start)

    @property
    def end_time(self) -> time:
        return parse_hhmm(self.end)

    def on(self, target_date: date, tz: ZoneInfo) -> Interval:
        """Anchor this range to ``target_date`` in ``tz``, returned in UTC."""
        start = datetime.combine(target_date, self.start_time, tzinfo=tz)
        end = datetime.combine(target_date, self.end_time, tzinfo=tz)
        return Interval(start.astimezone(timezone.utc), end.astimezone(timezone.utc))


class WeeklySchedule(BaseModel):
    """Recurring weekly working-hours template of one employee."""

    monday: list[TimeRange] = Field(default_factory=list)
    tuesday: list[TimeRange] = Field(default_factory=list)
    wednesday: list[TimeRange] = Field(default_factory=list)
    thursday: list[TimeRange] = Field(default_factory=list)
    friday: list[TimeRange] = Field(default_factory=list)
    saturday: list[TimeRange] = Field(default_factory=list)
    sunday: list[TimeRange] = Field(default_factory=list)

    @field_validator(
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
    )
    @classmethod
    def validate_day(cls, ranges: list[TimeRange]) -> list[TimeRange]:
        ordered = sorted(ranges, key=lambda r: r.start_time)
        for previous, current in zip(ordered, ordered[1:]):
            if current.start_time < previous.end_time:
                raise ValueError(
                    f"Working hours {previous.start}-{previous.end} and "
                    f"{current.start}-{current.end} overlap"
                )
        return ordered

    @classmethod
    def default(cls) -> "WeeklySchedule":
        """Monday to Friday 09:00-17:00, weekend off."""
        nine_to_five = [TimeRange(start="09:00", end="17:00")]
        return cls(
            monday=nine_to_five,
            tuesday=nine_to_five,
            wednesday=nine_to_five,
            thursday=nine_to_five,
            friday=nine_to_five,
        )

    @classmethod
    def from_rows(cls, rows: Iterable) -> "WeeklySchedule":
        """Build from ``WorkingHours`` rows; inactive rows are skipped."""
        days: dict[str, list[TimeRange]] = {day.key: [] for day in WeekDay}
        for row in rows:
            if not row.is_active:
                continue
            days[WeekDay[row.weekday].key].append(
                TimeRange(
                    start=row.start_time.strftime("%H:%M"),
                    end=row.end_time.strftime("%H:%M"),
                )
            )
        return cls(**days)

    def ranges_for_weekday(self, weekday: WeekDay) -> list[TimeRange]:
        return getattr(self, weekday.key)

    def intervals_for(self, target_date: date) -> list[TimeRange]:
        """Ordered time-of-day ranges worked on ``target_date``."""
        return self.ranges_for_weekday(WeekDay.for_date(target_date))

    def to_datetimes(self, target_date: date, tz: ZoneInfo) -> list[Interval]:
        return [r.on(target_date, tz) for r in self.intervals_for(target_date)]

    def iter_ranges(self):
        for weekday in WeekDay:
            for time_range in self.ranges_for_weekday(weekday):
                yield weekday, time_range
