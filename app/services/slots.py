"""Candidate slot generation and conflict filtering.

Pure functions, no I/O. The scheduling engine feeds them working-hours
windows, active bookings and blackouts read from the database; the booking
allocator reuses ``find_conflicts`` at commit time so that listing and
booking agree on what "free" means.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.schemas.scheduling import AvailableSlot
from app.utils.intervals import Interval, contains, overlaps_any


def validate_duration(duration_minutes: int) -> None:
    if not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise ValidationError(
            "Service duration must be a positive number of minutes",
            duration_minutes=duration_minutes,
        )


def validate_buffer(buffer_minutes: int) -> None:
    if (
        not isinstance(buffer_minutes, int)
        or buffer_minutes < 0
        or buffer_minutes > settings.MAX_BUFFER_MINUTES
    ):
        raise ValidationError(
            f"Buffer time must be between 0 and {settings.MAX_BUFFER_MINUTES} minutes",
            buffer_minutes=buffer_minutes,
        )


def generate_candidate_slots(
    windows: Iterable[Interval],
    duration_minutes: int,
    step_minutes: Optional[int] = None,
) -> list[AvailableSlot]:
    """Emit ``[current, current + duration)`` on a fixed grid inside each window.

    The grid restarts at every window start and advances by ``step_minutes``
    regardless of the duration, so a trailing remainder shorter than the
    duration stays unused.
    """
    validate_duration(duration_minutes)
    step = timedelta(minutes=step_minutes or settings.SLOT_STEP_MINUTES)
    duration = timedelta(minutes=duration_minutes)

    slots: list[AvailableSlot] = []
    for window in windows:
        current = window.start
        while contains(window, Interval(current, current + duration)):
            slots.append(AvailableSlot(start_time=current, end_time=current + duration))
            current += step
    return slots


def blocked_windows(
    booked: Iterable[Interval], buffer_minutes: int
) -> list[Interval]:
    """Extend each booked ``[start, end)`` by the trailing buffer only."""
    buffer = timedelta(minutes=buffer_minutes)
    return [Interval(b.start, b.end + buffer) for b in booked]


def find_conflicts(
    window: Interval,
    booked: Iterable[Interval],
    buffer_minutes: int,
    blackouts: Iterable[Interval] = (),
) -> list[Interval]:
    """Blocked intervals (buffered bookings and blackouts) overlapping ``window``."""
    blocked = blocked_windows(booked, buffer_minutes) + list(blackouts)
    return [b for b in blocked if window.overlaps(b)]


def filter_available_slots(
    candidates: Iterable[AvailableSlot],
    booked: Iterable[Interval],
    buffer_minutes: int,
    now: datetime,
    blackouts: Iterable[Interval] = (),
) -> list[AvailableSlot]:
    """Drop candidates that start at or before ``now`` or hit a blocked interval."""
    validate_buffer(buffer_minutes)
    blocked = blocked_windows(booked, buffer_minutes) + list(blackouts)

    available = []
    for slot in candidates:
        if slot.start_time <= now:
            continue
        window = Interval(slot.start_time, slot.end_time)
        if overlaps_any(window, blocked):
            continue
        available.append(slot)
    return available
