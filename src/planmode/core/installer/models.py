"""Install options and the report returned by an install run."""

from __future__ import annotations

from dataclasses import dataclass, field

from planmode.core.manifest.models import PackageType
from planmode.core.template import PromptFn


@dataclass
class InstallOptions:
    """Caller choices for one install request.

    Attributes:
        version: Constraint or exact version. None means "latest, unless
            already installed".
        force_rule: Install under rule placement whatever the manifest type.
        no_input: Never prompt; missing required variables are fatal.
        variables: Raw ``name -> value`` strings supplied by the caller.
        prompt: Callable asked for variable values when input is allowed.
    """

    version: str | None = None
    force_rule: bool = False
    no_input: bool = False
    variables: dict[str, str] = field(default_factory=dict)
    prompt: PromptFn | None = None

    def for_dependency(self, constraint: str | None) -> InstallOptions:
        """Options for a dependency edge: same ``no_input``, no variables."""
        return InstallOptions(version=constraint, no_input=self.no_input)


@dataclass(frozen=True)
class InstalledPackage:
    """A package written during an install run."""

    name: str
    version: str
    type: PackageType
    installed_to: str


@dataclass(frozen=True)
class ContentConflict:
    """Warning: an existing file with different content was overwritten."""

    name: str
    path: str
    existing_hash: str
    new_hash: str

    @property
    def message(self) -> str:
        return f"Overwrote {self.path} with new content for '{self.name}'"


@dataclass
class InstallReport:
    """Outcome of a successful install run.

    Attributes:
        installed: Packages written, in install order (dependencies follow
            their dependent).
        skipped: Names that were already locked at the requested version
            with their file in place. A package whose file already held
            identical content is still listed under ``installed``.
        warnings: Content conflicts that were resolved by overwriting.
    """

    installed: list[InstalledPackage] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[ContentConflict] = field(default_factory=list)

    @property
    def installed_names(self) -> list[str]:
        return [p.name for p in self.installed]
