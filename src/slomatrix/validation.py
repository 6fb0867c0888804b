"""Weekly coverage validation: overlaps, gaps, and per-window checks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel

from slomatrix.intervals import HOURS_PER_DAY, day_coverage, hours_overlap, intersect_days
from slomatrix.models import DAYS, Day, Service, TimeWindow, format_days

logger = logging.getLogger(__name__)


class ValidationIssue(BaseModel):
    type: Literal["overlap", "gap", "invalid", "ladder"]
    severity: Literal["error", "warning"]
    message: str
    entry_ids: list[str]
    affected_days: list[Day] | None = None
    affected_hours: str | None = None


class Gap(BaseModel):
    """An uncovered hour range ``[start_hour, end_hour)`` on one day."""

    day: Day
    start_hour: int
    end_hour: int

    @property
    def time_range(self) -> str:
        return f"{self.start_hour:02d}:00-{self.end_hour:02d}:00"


class ValidationSummary(BaseModel):
    has_errors: bool
    has_warnings: bool
    has_gaps: bool
    issues: list[ValidationIssue]
    gaps: list[Gap]
    gap_messages: list[str]


def find_overlaps(
    windows: Sequence[TimeWindow], day_order: Sequence[Day] = DAYS
) -> list[ValidationIssue]:
    """Report every pair of windows that share a day and overlapping hours.

    Each unordered pair is visited once, ``i`` ascending then ``j``
    ascending, and issues are returned in that order.
    """
    issues: list[ValidationIssue] = []

    for i, first in enumerate(windows):
        for second in windows[i + 1 :]:
            common_days = intersect_days(first.days, second.days, day_order)
            if not common_days:
                continue

            if not hours_overlap(
                first.start_hour, first.end_hour, second.start_hour, second.end_hour
            ):
                continue

            overlap_start = max(first.start_hour, second.start_hour)
            overlap_end = min(first.effective_end_hour, second.effective_end_hour)
            issues.append(
                ValidationIssue(
                    type="overlap",
                    severity="error",
                    message=(
                        f"Time windows overlap on {', '.join(common_days)}: "
                        f"{first.time_range} conflicts with {second.time_range}"
                    ),
                    entry_ids=[first.id, second.id],
                    affected_days=common_days,
                    affected_hours=f"{overlap_start:02d}:00 - {overlap_end:02d}:00",
                )
            )

    logger.debug("Found %d overlap(s) across %d window(s)", len(issues), len(windows))
    return issues


def find_gaps(
    windows: Sequence[TimeWindow], day_order: Sequence[Day] = DAYS
) -> list[Gap]:
    """Return maximal uncovered hour ranges, day by day in ``day_order``."""
    gaps: list[Gap] = []

    for day in day_order:
        covered = day_coverage(windows, day)

        gap_start: int | None = None
        # Hour 24 is a sentinel that flushes a gap running to end of day.
        for hour in range(HOURS_PER_DAY + 1):
            if hour < HOURS_PER_DAY and not covered[hour]:
                if gap_start is None:
                    gap_start = hour
            elif gap_start is not None:
                gaps.append(Gap(day=day, start_hour=gap_start, end_hour=hour))
                gap_start = None

    return gaps


def format_gaps(gaps: Sequence[Gap], day_order: Sequence[Day] = DAYS) -> list[str]:
    """Group gaps by time range and label each group's days.

    Groups keep the order in which their range was first seen, e.g.
    ``["00:00-09:00 (Mon - Fri)", "17:00-24:00 (Mon - Fri)",
    "00:00-24:00 (Weekends)"]``.
    """
    grouped: dict[str, list[Day]] = {}
    for gap in gaps:
        grouped.setdefault(gap.time_range, []).append(gap.day)

    return [
        f"{time_range} ({format_days(days, day_order)})"
        for time_range, days in grouped.items()
    ]


def validate_entry_time_range(entry: TimeWindow) -> ValidationIssue | None:
    """Check a single window for a degenerate time range or an empty day set.

    Overnight windows (start after the effective end) are valid.
    """
    start = entry.start_hour
    end = entry.effective_end_hour

    if start >= HOURS_PER_DAY:
        message = (
            f"Invalid time range: start time ({entry.start_time}) "
            f"must be before 24:00"
        )
    elif start == end:
        message = (
            f"Invalid time range: {entry.start_time}-{entry.end_time} "
            f"has zero length"
        )
    elif not entry.days:
        message = "At least one operating day must be selected"
    else:
        return None

    return ValidationIssue(
        type="invalid",
        severity="error",
        message=message,
        entry_ids=[entry.id],
    )


def validate_tier_ladder(entry: TimeWindow) -> list[ValidationIssue]:
    """Flag escalation ladders whose ranges leave holes or overlap.

    These are advisory: ``resolve_tier`` falls back to the last tier for any
    duration the ladder does not cover and is not changed by this check.
    """
    tiers = entry.escalation_tiers
    problems: list[str] = []

    if not tiers:
        problems.append("has no escalation tiers")
    elif tiers[0].min_downtime_minutes != 0:
        problems.append(
            f"first tier starts at {tiers[0].min_downtime_minutes} min, not 0"
        )

    for prev, tier in zip(tiers, tiers[1:]):
        if prev.max_downtime_minutes is None:
            problems.append(
                f"unbounded tier {prev.priority} is followed by {tier.priority}"
            )
        elif tier.min_downtime_minutes > prev.max_downtime_minutes:
            problems.append(
                f"no tier covers {prev.max_downtime_minutes}-"
                f"{tier.min_downtime_minutes} min"
            )
        elif tier.min_downtime_minutes < prev.max_downtime_minutes:
            problems.append(
                f"tiers {prev.priority} and {tier.priority} overlap at "
                f"{tier.min_downtime_minutes}-{prev.max_downtime_minutes} min"
            )

    return [
        ValidationIssue(
            type="ladder",
            severity="warning",
            message=f"Window {entry.id} ({entry.time_range}) {problem}",
            entry_ids=[entry.id],
        )
        for problem in problems
    ]


def summarize(service: Service, day_order: Sequence[Day] = DAYS) -> ValidationSummary:
    """Build the validation summary rendered for a service."""
    issues = find_overlaps(service.entries, day_order)
    gaps = find_gaps(service.entries, day_order)

    return ValidationSummary(
        has_errors=any(i.severity == "error" for i in issues),
        has_warnings=any(i.severity == "warning" for i in issues),
        has_gaps=bool(gaps),
        issues=issues,
        gaps=gaps,
        gap_messages=format_gaps(gaps, day_order),
    )
