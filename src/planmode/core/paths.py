"""Deterministic project-relative locations for installed packages.

Every operation takes the project root explicitly; nothing here consults the
current working directory.

Layout::

    <root>/planmode.lock            lockfile
    <root>/CLAUDE.md                import ledger host
    <root>/plans/<name>.md          plan packages
    <root>/.claude/rules/<name>.md  rule packages
    <root>/prompts/<name>.md        prompt packages
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from planmode.core.manifest.models import PackageType
from planmode.exceptions import FileSystemError

LOCKFILE_NAME = "planmode.lock"
LEDGER_DOCUMENT_NAME = "CLAUDE.md"
PACKAGE_SUFFIX = ".md"

_INSTALL_DIRS: dict[PackageType, PurePosixPath] = {
    PackageType.PLAN: PurePosixPath("plans"),
    PackageType.RULE: PurePosixPath(".claude/rules"),
    PackageType.PROMPT: PurePosixPath("prompts"),
}


def install_dir(pkg_type: PackageType) -> PurePosixPath:
    """Return the project-relative directory for a package type."""
    return _INSTALL_DIRS[PackageType(pkg_type)]


def install_path(name: str, pkg_type: PackageType) -> str:
    """Return the project-relative install path recorded in the lockfile.

    Always uses forward slashes so lockfiles are portable between platforms.
    Scoped names keep their scope directory (``plans/@acme/deploy.md``).
    """
    return str(install_dir(pkg_type) / f"{name}{PACKAGE_SUFFIX}")


def resolve_in_project(project_root: Path, relative: str) -> Path:
    """Join a recorded project-relative path onto the project root.

    The joined path must stay inside the project once symlinks and ``..``
    segments are resolved.

    Raises:
        FileSystemError: If *relative* is absolute or escapes *project_root*.
    """
    parts = PurePosixPath(relative.replace("\\", "/")).parts
    if not parts or parts[0] == "/" or ".." in parts:
        raise FileSystemError(f"Path {relative!r} escapes the project directory")
    target = project_root.joinpath(*parts)
    try:
        target.resolve().relative_to(project_root.resolve())
    except ValueError:
        raise FileSystemError(
            f"Path {relative!r} escapes the project directory"
        ) from None
    return target


def lockfile_path(project_root: Path) -> Path:
    return project_root / LOCKFILE_NAME


def ledger_document_path(project_root: Path) -> Path:
    return project_root / LEDGER_DOCUMENT_NAME


def plans_dir(project_root: Path) -> Path:
    return resolve_in_project(project_root, str(install_dir(PackageType.PLAN)))
