"""Diagnostic records produced by the consistency checker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """How serious a diagnostic is. Only errors make a project unhealthy."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class DiagnosticIssue:
    """A single divergence between lockfile, ledger and filesystem.

    Attributes:
        severity: Error or warning.
        message: What is wrong.
        fix: Suggested remedy, when there is an actionable one.
    """

    severity: Severity
    message: str
    fix: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"severity": self.severity.value, "message": self.message}
        if self.fix:
            data["fix"] = self.fix
        return data


@dataclass
class DoctorResult:
    """Outcome of ``run_doctor``."""

    issues: list[DiagnosticIssue] = field(default_factory=list)
    packages_checked: int = 0

    @property
    def errors(self) -> list[DiagnosticIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[DiagnosticIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def healthy(self) -> bool:
        """True when no error-severity issue was found."""
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "issues": [i.to_dict() for i in self.issues],
            "packages_checked": self.packages_checked,
            "healthy": self.healthy,
        }
