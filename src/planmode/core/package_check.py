"""Pre-publish checks for a package directory on disk.

``check_package`` runs every check in order and never raises. A check that
cannot run because an earlier one failed is left out of the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from planmode.core.doctor.models import Severity
from planmode.core.manifest import (
    MANIFEST_FILENAME,
    Manifest,
    read_manifest,
    read_package_content,
    validate_manifest,
)
from planmode.core.template import collect_values, missing_required_variables, render
from planmode.exceptions import PlanmodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageCheck:
    """Outcome of one check.

    Attributes:
        name: Human-readable check name.
        passed: Whether the check succeeded.
        severity: How a failure counts. Warnings never fail the package.
        message: Detail for a failed check.
    """

    name: str
    passed: bool
    severity: Severity = Severity.ERROR
    message: str = ""

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "name": self.name,
            "passed": self.passed,
            "severity": self.severity.value,
        }
        if self.message:
            data["message"] = self.message
        return data


@dataclass
class PackageCheckResult:
    checks: list[PackageCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True unless an error-severity check failed."""
        return not any(
            not c.passed and c.severity is Severity.ERROR for c in self.checks
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "passed": self.passed,
            "checks": [c.to_dict() for c in self.checks],
        }


def _load_raw(package_dir: Path) -> dict | None:
    try:
        data = yaml.safe_load((package_dir / MANIFEST_FILENAME).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError, UnicodeDecodeError) as exc:
        logger.debug("Could not reload %s: %s", MANIFEST_FILENAME, exc)
        return None
    return data if isinstance(data, dict) else None


def check_package(package_dir: Path) -> PackageCheckResult:
    """Check that the package in *package_dir* is ready to publish."""
    package_dir = Path(package_dir)
    result = PackageCheckResult()
    checks = result.checks

    try:
        parsed = read_manifest(package_dir)
    except PlanmodeError as exc:
        checks.append(PackageCheck("Manifest parses", False, message=str(exc)))
        return result
    if parsed.manifest is None:
        checks.append(
            PackageCheck("Manifest parses", False, message="; ".join(parsed.errors))
        )
        return result
    manifest: Manifest = parsed.manifest
    checks.append(PackageCheck("Manifest parses", True))

    publish_errors = validate_manifest(_load_raw(package_dir) or {}, require_publish_fields=True)
    checks.append(PackageCheck(
        "Manifest valid for publishing",
        not publish_errors,
        message="; ".join(publish_errors),
    ))

    try:
        content = read_package_content(package_dir, manifest)
    except PlanmodeError as exc:
        checks.append(PackageCheck("Content readable", False, message=str(exc)))
        return result
    checks.append(PackageCheck("Content readable", True))
    checks.append(PackageCheck(
        "Content is non-empty",
        bool(content.strip()),
        Severity.WARNING,
        "" if content.strip() else "Content is empty",
    ))

    if manifest.variables:
        missing = missing_required_variables(manifest.variables)
        checks.append(PackageCheck(
            "Required variables have defaults",
            not missing,
            Severity.WARNING,
            f"No default for: {', '.join(missing)}" if missing else "",
        ))
        defaults = {
            name: definition
            for name, definition in manifest.variables.items()
            if name not in missing
        }
        try:
            render(content, collect_values(defaults))
        except PlanmodeError as exc:
            checks.append(PackageCheck("Template renders with defaults", False, message=str(exc)))
        else:
            checks.append(PackageCheck("Template renders with defaults", True))

    return result
