"""Tests for the time model and display helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from slomatrix.models import (
    CRITICALITIES,
    DAYS,
    EscalationTier,
    Service,
    TimeWindow,
    effective_end,
    format_days,
    format_downtime,
    format_time_range,
    parse_hour,
    severity_rank,
)


def _window(entry_id: str = "w1", **overrides) -> TimeWindow:
    data = {
        "id": entry_id,
        "days": ["Mon"],
        "start_time": "09:00",
        "end_time": "17:00",
    }
    data.update(overrides)
    return TimeWindow.model_validate(data)


# ── hour clock ─────────────────────────────────────────────────────────────


def test_parse_hour_ignores_minutes():
    assert parse_hour("09:45") == 9
    assert parse_hour("24:00") == 24


def test_effective_end_maps_midnight_to_24():
    assert effective_end(0) == 24
    assert effective_end(17) == 17
    assert effective_end(24) == 24


def test_window_hour_properties():
    window = _window(start_time="22:00", end_time="06:00")

    assert window.start_hour == 22
    assert window.end_hour == 6
    assert window.effective_end_hour == 6
    assert window.is_overnight
    assert window.time_range == "22:00-06:00"


def test_window_ending_at_midnight_is_not_overnight():
    window = _window(start_time="17:00", end_time="00:00")

    assert window.effective_end_hour == 24
    assert not window.is_overnight


def test_window_accepts_only_2400_in_hour_24():
    assert _window(end_time="24:00").end_hour == 24
    with pytest.raises(ValidationError):
        _window(end_time="24:30")
    with pytest.raises(ValidationError):
        _window(start_time="24:59")


def test_window_rejects_malformed_time():
    with pytest.raises(ValidationError):
        _window(start_time="25:00")
    with pytest.raises(ValidationError):
        _window(end_time="9:00")


def test_window_rejects_duplicate_days():
    with pytest.raises(ValidationError, match="duplicate days: Mon"):
        _window(days=["Mon", "Tue", "Mon"])


def test_window_allows_empty_days():
    """An empty day set is reported by validation, not rejected by the model."""
    assert _window(days=[]).days == []


def test_service_rejects_duplicate_entry_ids():
    with pytest.raises(ValidationError, match="duplicate entry id 'w1'"):
        Service(id="s", name="S", app_id="APP-001", entries=[_window(), _window()])


# ── tiers and criticality ──────────────────────────────────────────────────


def test_tier_max_below_min_rejected():
    with pytest.raises(ValidationError, match="must not be below"):
        EscalationTier(priority="P2", min_downtime_minutes=60, max_downtime_minutes=30)


def test_tier_negative_min_rejected():
    with pytest.raises(ValidationError):
        EscalationTier(priority="P2", min_downtime_minutes=-1)


def test_tier_contains_is_half_open():
    tier = EscalationTier(priority="P2", min_downtime_minutes=30, max_downtime_minutes=120)

    assert not tier.contains(29)
    assert tier.contains(30)
    assert tier.contains(119)
    assert not tier.contains(120)


def test_unbounded_tier_contains_large_values():
    tier = EscalationTier(priority="P1", min_downtime_minutes=120)

    assert tier.contains(10_000)


def test_severity_rank_orders_most_severe_first():
    ranks = [severity_rank(c) for c in CRITICALITIES]

    assert ranks == sorted(ranks)
    assert severity_rank("Pc") < severity_rank("P1") < severity_rank("P3c")
    assert severity_rank("P3") < severity_rank("P3c") < severity_rank("P4")


# ── display helpers ────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [
        (None, "∞"),
        (0, "0 min"),
        (45, "45 min"),
        (60, "1 hour"),
        (120, "2 hours"),
        (150, "2.5 hours"),
        (75, "1.3 hours"),
        (195, "3.3 hours"),
    ],
)
def test_format_downtime(minutes, expected):
    assert format_downtime(minutes) == expected


def test_format_days_labels():
    assert format_days(DAYS) == "Every day"
    assert format_days(["Fri", "Thu", "Wed", "Tue", "Mon"]) == "Mon - Fri"
    assert format_days(["Sun", "Sat"]) == "Weekends"
    assert format_days(["Sun", "Mon", "Wed"]) == "Mon, Wed, Sun"


def test_format_days_every_day_needs_full_week():
    """A short custom order only reorders the list; it never means every day."""
    assert format_days(["Tue", "Mon"], day_order=("Tue", "Mon")) == "Tue, Mon"
    assert format_days(DAYS, day_order=tuple(reversed(DAYS))) == "Every day"


def test_format_time_range():
    assert format_time_range("08:00", "17:00") == "08:00 - 17:00"
