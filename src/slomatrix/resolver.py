"""Escalation tier resolution for elapsed outage durations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

from slomatrix.intervals import day_coverage
from slomatrix.loader import Registry, load_registry
from slomatrix.models import (
    CRITICALITIES,
    Criticality,
    Day,
    EscalationTier,
    Service,
    TimeWindow,
    severity_rank,
)

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Exception raised for errors during tier resolution."""


class WindowResolution(BaseModel):
    entry_id: str
    days: list[Day]
    start_time: str
    end_time: str
    priority: Criticality | None


class ServiceResolution(BaseModel):
    service: Service
    elapsed_minutes: int
    windows: list[WindowResolution]
    highest_active: Criticality | None


def resolve_tier(
    tiers: Sequence[EscalationTier], elapsed_minutes: int
) -> Criticality | None:
    """Return the priority that applies after ``elapsed_minutes`` of outage.

    Tiers are scanned in their declared order and the first one whose
    ``[min, max)`` range contains the duration wins. When no tier matches
    (a hole in the ladder, or a duration below the first tier's minimum)
    the LAST tier's priority is returned. An empty ladder resolves to None.

    Raises:
        ResolutionError: If ``elapsed_minutes`` is negative.
    """
    if elapsed_minutes < 0:
        raise ResolutionError(
            f"Elapsed minutes must be non-negative, got {elapsed_minutes}"
        )

    for tier in tiers:
        if tier.contains(elapsed_minutes):
            return tier.priority

    if not tiers:
        return None

    logger.debug(
        "No tier covers %d min; falling back to last tier %s",
        elapsed_minutes,
        tiers[-1].priority,
    )
    return tiers[-1].priority


def highest_criticality(service: Service) -> Criticality | None:
    """Most severe priority used by any tier of any window of the service."""
    used = {t.priority for e in service.entries for t in e.escalation_tiers}
    for criticality in CRITICALITIES:
        if criticality in used:
            return criticality
    return None


def window_at(service: Service, day: Day, hour: int) -> TimeWindow | None:
    """Return the first window covering ``hour`` on ``day``, if any.

    Overnight windows cover both ends of the same day, matching gap detection.
    """
    if not 0 <= hour < 24:
        raise ResolutionError(f"Hour must be between 0 and 23, got {hour}")

    for entry in service.entries:
        if day_coverage([entry], day)[hour]:
            return entry
    return None


def priority_at(
    service: Service, day: Day, hour: int, elapsed_minutes: int
) -> Criticality | None:
    """Priority at a given day/hour after ``elapsed_minutes``; None off-hours."""
    entry = window_at(service, day, hour)
    if entry is None:
        return None
    return resolve_tier(entry.escalation_tiers, elapsed_minutes)


def _load_registry(
    registry: Registry | None, registry_path: Path | None
) -> Registry:
    """Load registry if not already provided."""
    if registry is not None:
        return registry
    return load_registry(registry_path or Path("registry"))


def get_service(registry: Registry, service_id: str) -> Service:
    """Look up a service, raising ResolutionError with the available ids."""
    service = registry.get_service(service_id)
    if service is None:
        available = ", ".join(sorted(registry.services.keys()))
        raise ResolutionError(
            f"Service '{service_id}' not found. "
            f"Available services: {available}"
        )
    return service


def resolve(
    service_id: str,
    elapsed_minutes: int,
    registry: Registry | None = None,
    registry_path: Path | None = None,
) -> ServiceResolution:
    """Resolve the active priority of every window of a service.

    Args:
        service_id: The ID of the service to resolve.
        elapsed_minutes: Outage duration so far.
        registry: An optional pre-loaded Registry instance.
        registry_path: Path to the registry directory (default: ``Path("registry")``).

    Returns:
        A ``ServiceResolution`` with one entry per window, in window order.

    Raises:
        ResolutionError: If the service is not found or the duration is negative.
    """
    reg = _load_registry(registry, registry_path)
    service = get_service(reg, service_id)

    windows = [
        WindowResolution(
            entry_id=entry.id,
            days=entry.days,
            start_time=entry.start_time,
            end_time=entry.end_time,
            priority=resolve_tier(entry.escalation_tiers, elapsed_minutes),
        )
        for entry in service.entries
    ]

    return ServiceResolution(
        service=service,
        elapsed_minutes=elapsed_minutes,
        windows=windows,
        highest_active=min(
            (w.priority for w in windows if w.priority is not None),
            key=severity_rank,
            default=None,
        ),
    )
