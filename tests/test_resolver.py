"""Tests for escalation tier resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from slomatrix.loader import clear_cache, load_registry
from slomatrix.models import EscalationTier, Service, TimeWindow
from slomatrix.resolver import (
    ResolutionError,
    highest_criticality,
    priority_at,
    resolve,
    resolve_tier,
    window_at,
)

REGISTRY_PATH = Path(__file__).parent.parent / "registry"

LADDER = [
    EscalationTier(priority="P3c", min_downtime_minutes=0, max_downtime_minutes=30),
    EscalationTier(priority="P2", min_downtime_minutes=30, max_downtime_minutes=120),
    EscalationTier(priority="P1", min_downtime_minutes=120),
]


@pytest.fixture(autouse=True)
def _clear_cache():
    clear_cache()
    yield
    clear_cache()


def _service(*windows: TimeWindow) -> Service:
    return Service(id="svc", name="Service", app_id="APP-001", entries=list(windows))


# ── resolve_tier() tests ───────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [(0, "P3c"), (29, "P3c"), (30, "P2"), (119, "P2"), (120, "P1"), (10_000, "P1")],
)
def test_resolve_tier_boundaries(elapsed, expected):
    assert resolve_tier(LADDER, elapsed) == expected


def test_resolve_tier_gap_falls_back_to_last_tier():
    """A duration in a ladder hole resolves to the LAST tier, not None."""
    ladder = [
        EscalationTier(priority="P4", min_downtime_minutes=0, max_downtime_minutes=60),
        EscalationTier(priority="P2", min_downtime_minutes=90, max_downtime_minutes=120),
        EscalationTier(priority="P3", min_downtime_minutes=120, max_downtime_minutes=180),
    ]

    assert resolve_tier(ladder, 75) == "P3"


def test_resolve_tier_below_coverage_falls_back_to_last_tier():
    ladder = [
        EscalationTier(priority="P2", min_downtime_minutes=30, max_downtime_minutes=60),
        EscalationTier(priority="P1", min_downtime_minutes=60),
    ]

    assert resolve_tier(ladder, 10) == "P1"


def test_resolve_tier_trusts_declared_order():
    """Overlapping tiers: the first declared match wins, severity is ignored."""
    ladder = [
        EscalationTier(priority="P4", min_downtime_minutes=0, max_downtime_minutes=100),
        EscalationTier(priority="Pc", min_downtime_minutes=0),
    ]

    assert resolve_tier(ladder, 50) == "P4"


def test_resolve_tier_empty_ladder():
    assert resolve_tier([], 10) is None


def test_resolve_tier_negative_minutes():
    with pytest.raises(ResolutionError, match="non-negative"):
        resolve_tier(LADDER, -1)


# ── lookups ────────────────────────────────────────────────────────────────


def test_highest_criticality():
    service = _service(
        TimeWindow(
            id="a",
            days=["Mon"],
            start_time="00:00",
            end_time="12:00",
            escalation_tiers=[EscalationTier(priority="P4", min_downtime_minutes=0)],
        ),
        TimeWindow(
            id="b", days=["Mon"], start_time="12:00", end_time="24:00",
            escalation_tiers=LADDER,
        ),
    )

    assert highest_criticality(service) == "P1"


def test_highest_criticality_without_tiers():
    assert highest_criticality(_service()) is None


def test_window_at_overnight_same_day():
    night = TimeWindow(id="night", days=["Mon"], start_time="22:00", end_time="06:00")
    service = _service(night)

    assert window_at(service, "Mon", 23) == night
    assert window_at(service, "Mon", 3) == night
    assert window_at(service, "Mon", 12) is None
    assert window_at(service, "Tue", 3) is None


def test_window_at_first_match_wins():
    first = TimeWindow(id="first", days=["Mon"], start_time="08:00", end_time="17:00")
    second = TimeWindow(id="second", days=["Mon"], start_time="16:00", end_time="20:00")

    assert window_at(_service(first, second), "Mon", 16).id == "first"


def test_window_at_rejects_bad_hour():
    with pytest.raises(ResolutionError, match="Hour must be"):
        window_at(_service(), "Mon", 24)


def test_priority_at():
    window = TimeWindow(
        id="biz", days=["Mon"], start_time="09:00", end_time="17:00",
        escalation_tiers=LADDER,
    )
    service = _service(window)

    assert priority_at(service, "Mon", 10, 45) == "P2"
    assert priority_at(service, "Mon", 20, 45) is None


# ── resolve() against the sample registry ─────────────────────────────────


def test_resolve_payment_gateway():
    result = resolve("payment-gateway", 45, registry_path=REGISTRY_PATH)

    assert result.service.id == "payment-gateway"
    assert result.elapsed_minutes == 45
    assert [(w.entry_id, w.priority) for w in result.windows] == [
        ("pg-night", "P4"),
        ("pg-business", "P2"),
        ("pg-evening", "P4"),
    ]
    assert result.highest_active == "P2"


def test_resolve_uses_default_tiers():
    """payroll lists no tiers, so the policy default ladder applies."""
    result = resolve("payroll", 0, registry_path=REGISTRY_PATH)

    assert result.windows[0].priority == "P3c"


def test_resolve_with_preloaded_registry():
    registry = load_registry(REGISTRY_PATH)
    result = resolve("checkout", 60, registry=registry)

    assert result.highest_active == "Pc"


def test_resolve_unknown_service():
    with pytest.raises(ResolutionError, match="not found"):
        resolve("nonexistent-service", 0, registry_path=REGISTRY_PATH)
