"""planmode exception hierarchy.

All public exceptions inherit from PlanmodeError, giving callers a single
base class to catch when they want to handle any planmode failure without
swallowing unrelated errors. None of these terminate the process; mapping
to exit codes is the job of the CLI.
"""

from __future__ import annotations


class PlanmodeError(Exception):
    """Base exception for all planmode errors."""


class NotFoundError(PlanmodeError):
    """Raised when a package or one of its versions cannot be located."""


class PackageNotFoundError(NotFoundError):
    """Raised when a package is unknown to the registry or not installed."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"Package '{name}' not found.")


class VersionNotFoundError(NotFoundError):
    """Raised when no candidate version satisfies a constraint.

    Attributes:
        name: Package name, if known.
        constraint: The constraint that could not be satisfied.
        available: Every candidate version that was considered.
    """

    def __init__(
        self,
        constraint: str,
        available: list[str],
        name: str | None = None,
    ) -> None:
        self.name = name
        self.constraint = constraint
        self.available = list(available)
        subject = f" for '{name}'" if name else ""
        listing = ", ".join(self.available) if self.available else "(none)"
        super().__init__(
            f"Version '{constraint}' not found{subject}. Available: {listing}"
        )


class InvalidManifestError(PlanmodeError):
    """Raised when a manifest fails validation.

    Carries every field-level error found, not just the first one.
    """

    def __init__(self, field_errors: list[str]) -> None:
        self.field_errors = list(field_errors)
        joined = "; ".join(self.field_errors)
        super().__init__(f"Invalid manifest: {joined}")


class MissingVariableError(PlanmodeError):
    """Raised when a required template variable has no value or default."""

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description
        suffix = f" -- {description}" if description else ""
        super().__init__(f"Missing required variable: {name}{suffix}")


class InvalidVariableError(PlanmodeError):
    """Raised when a provided variable value does not fit its declaration."""


class NetworkError(PlanmodeError):
    """Raised on unrecoverable HTTP or transport failures."""


class FileSystemError(PlanmodeError):
    """Raised when reading or writing project files fails."""


class ConfigurationError(PlanmodeError):
    """Raised for missing or inconsistent user configuration."""


class InvalidConstraintError(PlanmodeError, ValueError):
    """Raised when a version or constraint string cannot be parsed."""
