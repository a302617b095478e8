"""Test half-open interval helpers."""

from datetime import datetime, timezone

from app.utils.intervals import Interval, contains, merge, overlaps, overlaps_any, subtract


def t(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 7, hour, minute, tzinfo=timezone.utc)


class TestOverlaps:
    def test_touching_intervals_do_not_overlap(self):
        assert not overlaps(t(9), t(10), t(10), t(11))
        assert not overlaps(t(10), t(11), t(9), t(10))

    def test_partial_overlap(self):
        assert overlaps(t(9), t(10, 30), t(10), t(11))

    def test_nested_overlap(self):
        assert overlaps(t(9), t(12), t(10), t(11))
        assert Interval(t(10), t(11)).overlaps(Interval(t(9), t(12)))

    def test_overlaps_any(self):
        others = [Interval(t(8), t(9)), Interval(t(12), t(13))]
        assert not overlaps_any(Interval(t(9), t(12)), others)
        assert overlaps_any(Interval(t(11), t(12, 30)), others)


class TestContains:
    def test_contains_same_interval(self):
        window = Interval(t(9), t(17))
        assert contains(window, window)

    def test_does_not_contain_spill_over(self):
        assert not contains(Interval(t(9), t(17)), Interval(t(16), t(18)))


class TestMerge:
    def test_merges_overlapping_and_touching(self):
        merged = merge(
            [
                Interval(t(12), t(13)),
                Interval(t(9), t(10)),
                Interval(t(10), t(11)),
                Interval(t(10, 30), t(11, 30)),
            ]
        )
        assert merged == [Interval(t(9), t(11, 30)), Interval(t(12), t(13))]

    def test_drops_empty_intervals(self):
        assert merge([Interval(t(9), t(9))]) == []


class TestSubtract:
    def test_no_blocks_returns_whole_interval(self):
        assert subtract(Interval(t(9), t(17)), []) == [Interval(t(9), t(17))]

    def test_block_in_the_middle(self):
        pieces = subtract(Interval(t(9), t(17)), [Interval(t(12), t(13))])
        assert pieces == [Interval(t(9), t(12)), Interval(t(13), t(17))]

    def test_blocks_at_edges_and_outside(self):
        pieces = subtract(
            Interval(t(9), t(17)),
            [
                Interval(t(7), t(9, 30)),
                Interval(t(16), t(18)),
                Interval(t(20), t(21)),
            ],
        )
        assert pieces == [Interval(t(9, 30), t(16))]

    def test_fully_covered(self):
        assert subtract(Interval(t(9), t(10)), [Interval(t(8), t(11))]) == []
