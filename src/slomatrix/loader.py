"""YAML registry loader and validator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from slomatrix.models import (
    Application,
    ApplicationsRegistry,
    Policies,
    PoliciesRegistry,
    Service,
    ServicesRegistry,
)
from slomatrix.validation import validate_entry_time_range

logger = logging.getLogger(__name__)

_cache: dict[str, Registry] = {}

REQUIRED_FILES = ("applications.yaml", "services.yaml", "policies.yaml")


class RegistryError(Exception):
    """Exception raised for errors during registry loading or validation."""


class Registry:
    """Container for a fully loaded and validated registry."""

    def __init__(
        self,
        applications: list[Application],
        services: list[Service],
        policies: Policies,
    ) -> None:
        self.application_list = applications
        self.applications = {a.app_id: a for a in applications}
        self.services = {s.id: s for s in services}
        self.policies = policies

    def get_service(self, service_id: str) -> Service | None:
        return self.services.get(service_id)

    def get_application(self, app_id: str) -> Application | None:
        return self.applications.get(app_id)


def _read_yaml(path: Path) -> Any:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RegistryError(f"Invalid {path.name}: {e}") from e


def _parse(model: type[BaseModel], data: Any, filename: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RegistryError(f"Invalid {filename}: {e}") from e


def _apply_default_tiers(services_data: Any, policies: Policies) -> None:
    """Give entries without an ``escalation_tiers`` key the policy defaults."""
    if not isinstance(services_data, dict):
        return
    defaults = [t.model_dump() for t in policies.default_tiers]
    for service in services_data.get("services") or []:
        if not isinstance(service, dict):
            continue
        for entry in service.get("entries") or []:
            if isinstance(entry, dict) and "escalation_tiers" not in entry:
                entry["escalation_tiers"] = [dict(t) for t in defaults]


def load_registry(registry_path: Path = Path("registry")) -> Registry:
    """Load, parse, validate and cache the YAML registry.

    Args:
        registry_path: Path to the directory containing the registry YAML files.

    Returns:
        A fully loaded Registry instance.

    Raises:
        RegistryError: If files are missing or validation fails.
    """
    resolved = str(registry_path.resolve())

    if resolved in _cache:
        logger.debug("Registry cache hit for %s", resolved)
        return _cache[resolved]

    # Check that all required files exist
    missing = [f for f in REQUIRED_FILES if not (registry_path / f).is_file()]
    if missing:
        raise RegistryError(
            f"Missing registry files in {registry_path}: {', '.join(missing)}"
        )

    # Policies first: they supply default tiers for services.yaml
    policies_data = _read_yaml(registry_path / "policies.yaml") or {}
    policies_reg = _parse(PoliciesRegistry, policies_data, "policies.yaml")

    applications_data = _read_yaml(registry_path / "applications.yaml")
    applications_reg = _parse(
        ApplicationsRegistry, applications_data, "applications.yaml"
    )

    services_data = _read_yaml(registry_path / "services.yaml")
    _apply_default_tiers(services_data, policies_reg.policies)
    services_reg = _parse(ServicesRegistry, services_data, "services.yaml")

    registry = Registry(
        applications=applications_reg.applications,
        services=services_reg.services,
        policies=policies_reg.policies,
    )
    logger.debug(
        "Loaded registry %s: %d application(s), %d service(s)",
        resolved,
        len(registry.applications),
        len(registry.services),
    )

    _cache[resolved] = registry
    return registry


def clear_cache() -> None:
    """Clear the in-memory registry cache."""
    _cache.clear()


def validate_registry(registry: Registry) -> list[str]:
    """Validate cross-references and window validity within a loaded registry.

    Returns a list of error messages. An empty list means the registry is valid.
    """
    errors: list[str] = []

    # Validate application ids
    seen_app_ids: set[str] = set()
    for app in registry.application_list:
        if app.app_id in seen_app_ids:
            errors.append(f"Application '{app.app_id}': duplicate app_id")
        seen_app_ids.add(app.app_id)

    for service in registry.services.values():
        if service.app_id not in registry.applications:
            errors.append(
                f"Service '{service.id}': app_id '{service.app_id}' "
                f"not found in applications"
            )

        # Validate each time window on its own
        for entry in service.entries:
            issue = validate_entry_time_range(entry)
            if issue is not None:
                errors.append(
                    f"Service '{service.id}', window '{entry.id}': {issue.message}"
                )

    return errors
