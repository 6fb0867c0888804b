"""CLI interface for the SLO criticality matrix."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from slomatrix.loader import RegistryError, clear_cache, load_registry, validate_registry
from slomatrix.models import DAYS, Criticality, Day
from slomatrix.output import (
    render_gaps,
    render_priority_at,
    render_resolution,
    render_resolution_json,
    render_service_list,
    render_summary,
    render_summary_json,
    render_timeline,
    render_validation_errors,
)
from slomatrix.resolver import (
    ResolutionError,
    get_service,
    priority_at,
    resolve,
    window_at,
)
from slomatrix.validation import find_gaps, format_gaps, summarize, validate_tier_ladder

console = Console()

app = typer.Typer(
    name="slomatrix",
    help="SLO Criticality Matrix: weekly coverage and escalation checks.",
    no_args_is_help=True,
)

RegistryOption = Annotated[
    Path, typer.Option("--registry", "-r", help="Path to registry directory.")
]
MinutesOption = Annotated[
    int, typer.Option("--minutes", "-m", min=0, help="Elapsed outage minutes.")
]


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_day(value: str) -> Day:
    for day in DAYS:
        if day.lower() == value.lower():
            return day
    raise typer.BadParameter(f"'{value}' is not one of {', '.join(DAYS)}")


@app.command("list")
def list_cmd(
    registry: RegistryOption = Path("registry"),
) -> None:
    """List all registered services."""
    try:
        reg = load_registry(registry)
        render_service_list(reg)
    except RegistryError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)


@app.command("check")
def check_cmd(
    service_id: Annotated[str, typer.Argument(help="Service ID to check.")],
    registry: RegistryOption = Path("registry"),
    as_json: Annotated[
        bool, typer.Option("--json", help="Output as JSON.")
    ] = False,
) -> None:
    """Check a service for overlapping windows and coverage gaps."""
    try:
        clear_cache()
        reg = load_registry(registry)
        service = get_service(reg, service_id)
    except (RegistryError, ResolutionError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    summary = summarize(service)
    if as_json:
        render_summary_json(summary)
    else:
        render_summary(service, summary)

    if summary.has_errors or (summary.has_gaps and reg.policies.fail_on_gaps):
        raise typer.Exit(code=1)


@app.command("gaps")
def gaps_cmd(
    service_id: Annotated[str, typer.Argument(help="Service ID to check.")],
    registry: RegistryOption = Path("registry"),
) -> None:
    """Show uncovered hours of the week for a service."""
    try:
        reg = load_registry(registry)
        service = get_service(reg, service_id)
    except (RegistryError, ResolutionError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    render_gaps(service, format_gaps(find_gaps(service.entries)))


@app.command("tier")
def tier_cmd(
    service_id: Annotated[str, typer.Argument(help="Service ID to resolve.")],
    minutes: MinutesOption = 0,
    day: Annotated[
        Optional[str], typer.Option("--day", "-d", help="Day of week, e.g. Mon.")
    ] = None,
    hour: Annotated[
        Optional[int], typer.Option("--hour", min=0, max=23, help="Hour of day.")
    ] = None,
    registry: RegistryOption = Path("registry"),
    as_json: Annotated[
        bool, typer.Option("--json", help="Output as JSON.")
    ] = False,
) -> None:
    """Resolve the active escalation priority after an outage duration."""
    if (day is None) != (hour is None):
        console.print("[red]Error:[/red] --day and --hour must be given together")
        raise typer.Exit(code=2)

    try:
        reg = load_registry(registry)
        if day is not None and hour is not None:
            service = get_service(reg, service_id)
            parsed_day = _parse_day(day)
            entry = window_at(service, parsed_day, hour)
            priority = priority_at(service, parsed_day, hour, minutes)
            render_priority_at(service, parsed_day, hour, entry, priority)
            return

        result = resolve(service_id, minutes, registry=reg)
        if as_json:
            render_resolution_json(result)
        else:
            render_resolution(result)
    except (RegistryError, ResolutionError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)


@app.command("timeline")
def timeline_cmd(
    service_id: Annotated[str, typer.Argument(help="Service ID to show.")],
    minutes: MinutesOption = 0,
    registry: RegistryOption = Path("registry"),
) -> None:
    """Show the weekly day × hour grid of active priorities."""
    try:
        reg = load_registry(registry)
        service = get_service(reg, service_id)
    except (RegistryError, ResolutionError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    limit = reg.policies.timeline_max_minutes
    if minutes > limit:
        console.print(
            f"[red]Error:[/red] --minutes must not exceed {limit} "
            f"(policies.timeline_max_minutes)"
        )
        raise typer.Exit(code=1)

    grid: dict[Day, list[Criticality | None]] = {
        d: [priority_at(service, d, h, minutes) for h in range(24)] for d in DAYS
    }
    render_timeline(service, minutes, grid)


@app.command("validate")
def validate_cmd(
    registry: RegistryOption = Path("registry"),
) -> None:
    """Validate the registry for consistency errors."""
    try:
        reg = load_registry(registry)
        errors = validate_registry(reg)
        warnings = [
            f"Service '{service.id}': {issue.message}"
            for service in reg.services.values()
            for entry in service.entries
            for issue in validate_tier_ladder(entry)
        ]
        render_validation_errors(errors, warnings)
        if errors:
            raise typer.Exit(code=1)
    except RegistryError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)
