"""Rich output formatting for CLI results."""

from __future__ import annotations

import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from slomatrix.loader import Registry
from slomatrix.models import (
    DAYS,
    Criticality,
    Day,
    Service,
    TimeWindow,
    format_days,
    format_downtime,
)
from slomatrix.resolver import ServiceResolution, highest_criticality
from slomatrix.validation import ValidationIssue, ValidationSummary, summarize

console = Console()

TIER_COLORS: dict[str, str] = {
    "Pc": "magenta bold",
    "P1": "red bold",
    "P2": "red",
    "P3": "yellow",
    "P3c": "bright_yellow",
    "P4": "green",
}


def _priority_text(priority: Criticality | None) -> Text:
    if priority is None:
        return Text("-", style="dim")
    return Text(priority, style=TIER_COLORS.get(priority, "white"))


def _ladder_text(entry: TimeWindow) -> Text:
    text = Text()
    for idx, tier in enumerate(entry.escalation_tiers):
        if idx:
            text.append(" → ")
        text.append(tier.priority, style=TIER_COLORS.get(tier.priority, "white"))
        text.append(
            f" {format_downtime(tier.min_downtime_minutes)}"
            f"-{format_downtime(tier.max_downtime_minutes)}",
            style="dim",
        )
    return text


def render_service_list(registry: Registry) -> None:
    """Render a table of registered services with their validation status.

    Args:
        registry: The loaded registry.
    """
    table = Table(title="Registered Services", show_header=True, header_style="bold")
    table.add_column("ID", no_wrap=True)
    table.add_column("Name")
    table.add_column("Application")
    table.add_column("Windows", justify="right")
    table.add_column("Highest")
    table.add_column("Status")

    for svc in sorted(registry.services.values(), key=lambda s: (s.app_id, s.id)):
        app = registry.get_application(svc.app_id)
        summary = summarize(svc)
        if summary.has_errors:
            status = Text("conflicts", style="red")
        elif summary.has_gaps:
            status = Text("gaps", style="yellow")
        else:
            status = Text("ok", style="green")

        table.add_row(
            svc.id,
            svc.name,
            app.name if app is not None else svc.app_id,
            str(len(svc.entries)),
            _priority_text(highest_criticality(svc)),
            status,
        )

    console.print(table)


def render_summary(service: Service, summary: ValidationSummary) -> None:
    """Render a service's windows, overlap issues and coverage gaps.

    Args:
        service: The service that was validated.
        summary: Its validation summary.
    """
    conflicting = {eid for issue in summary.issues for eid in issue.entry_ids}

    table = Table(show_header=True, header_style="bold")
    table.add_column("Window", min_width=10)
    table.add_column("Days", min_width=12)
    table.add_column("Hours", width=13)
    table.add_column("Escalation")

    for entry in service.entries:
        window_id = Text(entry.id, style="red" if entry.id in conflicting else "")
        table.add_row(
            window_id,
            format_days(entry.days),
            entry.time_range,
            _ladder_text(entry),
        )

    panel = Panel(table, title=f"Coverage: {service.name}", border_style="blue")
    console.print(panel)

    _render_issues(summary.issues)

    if summary.has_gaps:
        console.print(Text("Coverage gaps:", style="yellow bold"))
        for message in summary.gap_messages:
            console.print(Text(f"  • {message}", style="yellow"))
    else:
        console.print(Text("Full weekly coverage.", style="green"))


def _render_issues(issues: list[ValidationIssue]) -> None:
    if not issues:
        console.print(Text("No conflicting time windows.", style="green"))
        return

    console.print(
        Text(f"{len(issues)} conflict(s) found:", style="red bold")
    )
    for issue in issues:
        style = "red" if issue.severity == "error" else "yellow"
        console.print(Text(f"  • {issue.message}", style=style))


def render_summary_json(summary: ValidationSummary) -> None:
    """Output the validation summary as formatted JSON."""
    console.print_json(json.dumps(summary.model_dump()))


def render_gaps(service: Service, gap_messages: list[str]) -> None:
    """Render the grouped gap messages for a service.

    Args:
        service: The service that was checked.
        gap_messages: Output of ``format_gaps``.
    """
    if not gap_messages:
        console.print(Text(f"{service.name}: no coverage gaps.", style="green"))
        return

    console.print(Text(f"{service.name}: uncovered hours", style="bold"))
    for message in gap_messages:
        console.print(Text(f"  • {message}", style="yellow"))


def render_resolution(resolution: ServiceResolution) -> None:
    """Render the active priority of each window after an outage duration."""
    header_text = Text()
    header_text.append(f"{resolution.service.name} after ")
    header_text.append(format_downtime(resolution.elapsed_minutes), style="bold")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Window")
    table.add_column("Days")
    table.add_column("Hours")
    table.add_column("Priority", justify="center")

    for window in resolution.windows:
        table.add_row(
            window.entry_id,
            format_days(window.days),
            f"{window.start_time}-{window.end_time}",
            _priority_text(window.priority),
        )

    console.print(Panel(table, title=header_text, border_style="cyan"))

    footer = Text("  Highest active: ", style="dim")
    footer.append_text(_priority_text(resolution.highest_active))
    console.print(footer)


def render_resolution_json(resolution: ServiceResolution) -> None:
    data = resolution.model_dump()
    console.print_json(json.dumps(data))


def render_priority_at(
    service: Service,
    day: Day,
    hour: int,
    entry: TimeWindow | None,
    priority: Criticality | None,
) -> None:
    """Render the priority that applies at one day/hour."""
    content = Text()
    content.append(f"{day} {hour:02d}:00  ", style="bold")
    if entry is None:
        content.append("outside operating hours", style="dim")
    else:
        content.append_text(_priority_text(priority))
        content.append(f"  (window {entry.id}, {entry.time_range})", style="dim")

    console.print(Panel(content, title=service.name, border_style="cyan"))


def render_timeline(
    service: Service,
    elapsed_minutes: int,
    grid: dict[Day, list[Criticality | None]],
) -> None:
    """Render a weekly day × hour grid of active priorities.

    Args:
        service: The service being shown.
        elapsed_minutes: Outage duration the grid was resolved for.
        grid: Priority per hour (24 slots) for each day.
    """
    table = Table(
        title=f"{service.name}: weekly schedule at {format_downtime(elapsed_minutes)}",
        show_header=True,
        header_style="bold",
        padding=(0, 0),
    )
    table.add_column("Day", width=4)
    for hour in range(24):
        table.add_column(f"{hour:02d}", justify="center", width=3)

    for day in DAYS:
        cells = [
            _priority_text(p) if p is not None else Text("·", style="dim")
            for p in grid[day]
        ]
        table.add_row(day, *cells)

    console.print(table)


def render_validation_errors(errors: list[str], warnings: list[str]) -> None:
    """Render registry validation results.

    Args:
        errors: List of validation error messages. Empty means success.
        warnings: Advisory messages, e.g. escalation ladder holes.
    """
    for warning in warnings:
        console.print(Text(f"  ! {warning}", style="yellow"))

    if not errors:
        console.print(
            Text(
                "Registry validation passed, no errors found.",
                style="green bold",
            )
        )
        return

    console.print(
        Text(f"Validation failed with {len(errors)} error(s):", style="red bold")
    )
    for error in errors:
        console.print(Text(f"  • {error}", style="red"))
