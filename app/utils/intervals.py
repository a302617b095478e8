"""Half-open interval arithmetic.

Every interval is ``[start, end)``: two intervals that only touch at an
endpoint do not overlap. ``overlaps`` is the one predicate used both when
listing slots and when the allocator re-checks a window at commit time.
"""

from datetime import datetime
from typing import Iterable, NamedTuple


class Interval(NamedTuple):
    start: datetime
    end: datetime

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """True iff ``[a_start, a_end)`` and ``[b_start, b_end)`` share any instant."""
    return a_start < b_end and b_start < a_end


def contains(outer: Interval, inner: Interval) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def overlaps_any(interval: Interval, others: Iterable[Interval]) -> bool:
    return any(interval.overlaps(other) for other in others)


def merge(intervals: Iterable[Interval]) -> list[Interval]:
    """Union of the given intervals; touching intervals are joined."""
    merged: list[Interval] = []
    for current in sorted(intervals):
        if current.start >= current.end:
            continue
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def subtract(interval: Interval, blocks: Iterable[Interval]) -> list[Interval]:
    """Pieces of ``interval`` not covered by any of ``blocks``, in order."""
    remaining: list[Interval] = []
    cursor = interval.start
    for block in merge(blocks):
        if block.end <= cursor:
            continue
        if block.start >= interval.end:
            break
        if block.start > cursor:
            remaining.append(Interval(cursor, block.start))
        cursor = max(cursor, block.end)
        if cursor >= interval.end:
            break
    if cursor < interval.end:
        remaining.append(Interval(cursor, interval.end))
    return remaining
