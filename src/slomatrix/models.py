"""Pydantic models for services, time windows, and escalation tiers."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

Day = Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
Criticality = Literal["Pc", "P1", "P2", "P3", "P3c", "P4"]

# Canonical display order, Mon -> Sun.
DAYS: tuple[Day, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
WEEKDAYS: tuple[Day, ...] = DAYS[:5]
WEEKEND: tuple[Day, ...] = DAYS[5:]

# Most severe first.
CRITICALITIES: tuple[Criticality, ...] = ("Pc", "P1", "P2", "P3", "P3c", "P4")

TIME_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$"


def severity_rank(criticality: Criticality) -> int:
    """Return the position of a criticality in the severity order (0 = most severe)."""
    return CRITICALITIES.index(criticality)


def parse_hour(time: str) -> int:
    """Return the hour part of an ``HH:MM`` string. Minutes are ignored."""
    return int(time.split(":")[0])


def effective_end(end_hour: int) -> int:
    """An end hour of 0 means end of day (24:00)."""
    return 24 if end_hour == 0 else end_hour


class Stakeholder(BaseModel):
    primary: str
    delegate: str = ""


class Application(BaseModel):
    id: str
    app_id: str
    name: str
    manager: Stakeholder
    it_owner: Stakeholder
    business_owner: Stakeholder


class EscalationTier(BaseModel):
    priority: Criticality
    min_downtime_minutes: int = Field(ge=0)
    max_downtime_minutes: int | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> EscalationTier:
        if (
            self.max_downtime_minutes is not None
            and self.max_downtime_minutes < self.min_downtime_minutes
        ):
            raise ValueError(
                f"max_downtime_minutes ({self.max_downtime_minutes}) must not be "
                f"below min_downtime_minutes ({self.min_downtime_minutes})"
            )
        return self

    def contains(self, elapsed_minutes: int) -> bool:
        """True if ``elapsed_minutes`` falls in ``[min, max)``."""
        return elapsed_minutes >= self.min_downtime_minutes and (
            self.max_downtime_minutes is None
            or elapsed_minutes < self.max_downtime_minutes
        )


class TimeWindow(BaseModel):
    """A recurring weekly operating period with its own escalation ladder.

    ``end_time`` of ``00:00`` (or ``24:00``) means end of day. A start later
    than the effective end describes an overnight window.
    """

    id: str
    days: list[Day]
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    escalation_tiers: list[EscalationTier] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def _no_duplicate_days(cls, days: list[Day]) -> list[Day]:
        duplicates = sorted({d for d in days if days.count(d) > 1}, key=DAYS.index)
        if duplicates:
            raise ValueError(f"duplicate days: {', '.join(duplicates)}")
        return days

    @property
    def start_hour(self) -> int:
        return parse_hour(self.start_time)

    @property
    def end_hour(self) -> int:
        return parse_hour(self.end_time)

    @property
    def effective_end_hour(self) -> int:
        return effective_end(self.end_hour)

    @property
    def is_overnight(self) -> bool:
        return self.start_hour > self.effective_end_hour

    @property
    def time_range(self) -> str:
        return f"{self.start_time}-{self.end_time}"


class Service(BaseModel):
    id: str
    name: str
    app_id: str
    entries: list[TimeWindow] = Field(default_factory=list)

    @field_validator("entries")
    @classmethod
    def _unique_entry_ids(cls, entries: list[TimeWindow]) -> list[TimeWindow]:
        seen: set[str] = set()
        for entry in entries:
            if entry.id in seen:
                raise ValueError(f"duplicate entry id '{entry.id}'")
            seen.add(entry.id)
        return entries


class Policies(BaseModel):
    default_tiers: list[EscalationTier] = Field(
        default_factory=lambda: [
            EscalationTier(priority="P3c", min_downtime_minutes=0, max_downtime_minutes=30),
            EscalationTier(priority="P2", min_downtime_minutes=30, max_downtime_minutes=120),
            EscalationTier(priority="P1", min_downtime_minutes=120),
        ]
    )
    fail_on_gaps: bool = False
    timeline_max_minutes: int = Field(default=240, gt=0)


class ApplicationsRegistry(BaseModel):
    applications: list[Application]


class ServicesRegistry(BaseModel):
    services: list[Service]


class PoliciesRegistry(BaseModel):
    policies: Policies = Field(default_factory=Policies)


# ── display helpers ────────────────────────────────────────────────────────


def format_downtime(minutes: int | None) -> str:
    """Render a downtime bound, e.g. ``45 min``, ``1 hour``, ``2.5 hours``, ``∞``."""
    if minutes is None:
        return "∞"
    if minutes < 60:
        return f"{minutes} min"
    # Half-up to one decimal: 75 min -> 1.3 hours.
    hours = math.floor(minutes / 60 * 10 + 0.5) / 10
    if hours == int(hours):
        return "1 hour" if hours == 1 else f"{int(hours)} hours"
    return f"{hours} hours"


def format_time_range(start_time: str, end_time: str) -> str:
    return f"{start_time} - {end_time}"


def format_days(days: Iterable[Day], day_order: Sequence[Day] = DAYS) -> str:
    """Label a day set: ``Every day``, ``Mon - Fri``, ``Weekends`` or a list.

    Labels are decided against the full week; ``day_order`` only orders the
    comma-joined fallback.
    """
    selected = set(days)
    if selected == set(DAYS):
        return "Every day"
    if selected == set(WEEKDAYS):
        return "Mon - Fri"
    if selected == set(WEEKEND):
        return "Weekends"
    return ", ".join(d for d in day_order if d in selected)
