"""Hour-interval and day-set arithmetic over the weekly calendar."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from slomatrix.models import DAYS, Day, TimeWindow, effective_end

HOURS_PER_DAY = 24


def intersect_days(
    days_a: Iterable[Day], days_b: Iterable[Day], day_order: Sequence[Day] = DAYS
) -> list[Day]:
    """Return the days present in both sets, in ``day_order``."""
    common = set(days_a) & set(days_b)
    return [d for d in day_order if d in common]


def hours_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Check whether ``[start1, end1)`` and ``[start2, end2)`` intersect.

    End hours of 0 are read as 24. Overnight ranges are NOT wrapped: a window
    such as 22:00-06:00 is compared on its raw bounds (start 22, end 6), not
    as 22:00-24:00 plus 00:00-06:00. ``mark_coverage`` does wrap.
    """
    return start1 < effective_end(end2) and start2 < effective_end(end1)


def mark_coverage(covered: list[bool], start: int, end: int) -> None:
    """Mark the hours of ``[start, end)`` as covered in a 24-slot array.

    When ``start`` is past the effective end the range wraps around midnight
    on the same day: ``[start, 24)`` and ``[0, end)`` are both marked.
    """
    stop = effective_end(end)
    if start > stop:
        ranges = [(start, HOURS_PER_DAY), (0, stop)]
    else:
        ranges = [(start, stop)]

    for lo, hi in ranges:
        for hour in range(lo, min(hi, HOURS_PER_DAY)):
            covered[hour] = True


def day_coverage(windows: Iterable[TimeWindow], day: Day) -> list[bool]:
    """Return a 24-slot coverage array for ``day``."""
    covered = [False] * HOURS_PER_DAY
    for window in windows:
        if day not in window.days:
            continue
        mark_coverage(covered, window.start_hour, window.end_hour)
    return covered
