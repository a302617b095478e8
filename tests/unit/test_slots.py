"""Test candidate slot generation and conflict filtering."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import ValidationError
from app.services.slots import (
    blocked_windows,
    filter_available_slots,
    find_conflicts,
    generate_candidate_slots,
)
from app.utils.intervals import Interval


def t(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 7, hour, minute, tzinfo=timezone.utc)


NINE_TO_FIVE = [Interval(t(9), t(17))]
BEFORE_OPENING = t(8)


class TestGenerateCandidateSlots:
    def test_full_day_one_hour_service(self):
        slots = generate_candidate_slots(NINE_TO_FIVE, 60)

        assert len(slots) == 15
        assert slots[0].start_time == t(9)
        assert slots[-1].start_time == t(16)
        assert slots[-1].end_time == t(17)
        assert all(
            b.start_time - a.start_time == timedelta(minutes=30)
            for a, b in zip(slots, slots[1:])
        )

    def test_slots_stay_inside_window(self):
        slots = generate_candidate_slots([Interval(t(9), t(10, 45))], 45)

        assert [s.start_time for s in slots] == [t(9), t(9, 30), t(10)]
        assert all(s.end_time <= t(10, 45) for s in slots)

    def test_grid_restarts_per_window(self):
        windows = [Interval(t(9), t(12)), Interval(t(13, 15), t(15))]
        slots = generate_candidate_slots(windows, 60)

        starts = [s.start_time for s in slots]
        assert starts == [
            t(9), t(9, 30), t(10), t(10, 30), t(11),
            t(13, 15), t(13, 45),
        ]

    def test_service_longer_than_window(self):
        assert generate_candidate_slots([Interval(t(9), t(10))], 90) == []

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(ValidationError):
            generate_candidate_slots(NINE_TO_FIVE, duration)


class TestFilterAvailableSlots:
    def test_no_bookings_keeps_every_future_slot(self):
        candidates = generate_candidate_slots(NINE_TO_FIVE, 60)
        assert filter_available_slots(candidates, [], 15, BEFORE_OPENING) == candidates

    def test_trailing_buffer_blocks_following_slot(self):
        candidates = generate_candidate_slots(NINE_TO_FIVE, 60)
        booked = [Interval(t(10), t(11))]

        with_buffer = filter_available_slots(candidates, booked, 15, BEFORE_OPENING)
        starts = {s.start_time for s in with_buffer}
        assert t(9) in starts
        assert t(11) not in starts
        assert t(11, 30) in starts
        assert {t(9, 30), t(10), t(10, 30)}.isdisjoint(starts)
        assert len(with_buffer) == 11

        without_buffer = filter_available_slots(candidates, booked, 0, BEFORE_OPENING)
        assert t(11) in {s.start_time for s in without_buffer}
        assert len(without_buffer) == 12

    def test_buffer_is_trailing_only(self):
        candidates = generate_candidate_slots(NINE_TO_FIVE, 60)
        available = filter_available_slots(
            candidates, [Interval(t(12), t(13))], 30, BEFORE_OPENING
        )
        # 11:00-12:00 ends exactly when the booking starts
        assert t(11) in {s.start_time for s in available}

    def test_past_and_current_slots_excluded(self):
        candidates = generate_candidate_slots(NINE_TO_FIVE, 60)
        available = filter_available_slots(candidates, [], 0, t(12))

        assert available[0].start_time == t(12, 30)
        assert all(s.start_time > t(12) for s in available)

    def test_now_off_the_grid(self):
        candidates = generate_candidate_slots(NINE_TO_FIVE, 60)
        available = filter_available_slots(candidates, [], 0, t(14, 32))
        starts = {s.start_time for s in available}

        assert available[0].start_time == t(15)
        assert t(14, 30) not in starts
        assert len(available) == 3

    def test_blackouts_excluded(self):
        candidates = generate_candidate_slots(NINE_TO_FIVE, 60)
        available = filter_available_slots(
            candidates, [], 0, BEFORE_OPENING, blackouts=[Interval(t(12), t(14))]
        )
        starts = {s.start_time for s in available}

        assert t(11) in starts
        assert t(14) in starts
        assert {t(11, 30), t(12), t(12, 30), t(13), t(13, 30)}.isdisjoint(starts)

    def test_every_result_is_conflict_free(self):
        candidates = generate_candidate_slots(NINE_TO_FIVE, 45)
        booked = [Interval(t(9, 30), t(10, 15)), Interval(t(14), t(15))]
        available = filter_available_slots(candidates, booked, 15, BEFORE_OPENING)

        for slot in available:
            window = Interval(slot.start_time, slot.end_time)
            assert find_conflicts(window, booked, 15) == []

    def test_invalid_buffer_rejected(self):
        with pytest.raises(ValidationError):
            filter_available_slots([], [], 61, BEFORE_OPENING)


class TestFindConflicts:
    def test_reports_buffered_booking(self):
        conflicts = find_conflicts(
            Interval(t(11), t(12)), [Interval(t(10), t(11))], 15
        )
        assert conflicts == [Interval(t(10), t(11, 15))]

    def test_blocked_windows_extend_end(self):
        assert blocked_windows([Interval(t(10), t(11))], 15) == [
            Interval(t(10), t(11, 15))
        ]
