"""Read-only audit of a project's lockfile, import ledger and files.

``run_doctor`` never raises and never writes. Every divergence it finds is
reported as a ``DiagnosticIssue`` classified as an error (something is
broken) or a warning (local drift, or files planmode does not manage).

Checks, in report order:

1. Every lock entry's file exists (error), and its hash matches the
   recorded hash (warning: the file was edited locally).
2. Every plan entry is referenced in the ledger (error).
3. Every ledger reference has a lock entry; if not, the plan file either
   exists (warning: untracked) or is missing (error: dangling reference).
4. ``CLAUDE.md`` exists when any plan is installed (error).
5. Files in ``plans/`` with no lock entry at all (warning).
"""

from __future__ import annotations

import logging
from pathlib import Path

from planmode.core.doctor.models import DiagnosticIssue, DoctorResult, Severity
from planmode.core.hashing import hash_file
from planmode.core.ledger import SECTION_HEADING, ImportLedger, reference_line
from planmode.core.lockfile import Lockfile, LockfileStore
from planmode.core.manifest import PackageType
from planmode.core.paths import (
    LEDGER_DOCUMENT_NAME,
    LOCKFILE_NAME,
    PACKAGE_SUFFIX,
    install_path,
    plans_dir,
    resolve_in_project,
)
from planmode.exceptions import FileSystemError

logger = logging.getLogger(__name__)


def _error(message: str, fix: str | None = None) -> DiagnosticIssue:
    return DiagnosticIssue(Severity.ERROR, message, fix)


def _warning(message: str, fix: str | None = None) -> DiagnosticIssue:
    return DiagnosticIssue(Severity.WARNING, message, fix)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def _check_entries(project_root: Path, lockfile: Lockfile) -> list[DiagnosticIssue]:
    issues: list[DiagnosticIssue] = []
    for name, entry in lockfile.items():
        try:
            path = resolve_in_project(project_root, entry.installed_to)
        except FileSystemError as exc:
            issues.append(_error(
                f'Install path for "{name}" is outside the project: {exc}',
                f"Remove the entry from {LOCKFILE_NAME}, then run "
                f"`planmode install {name}`",
            ))
            continue
        if not path.is_file():
            issues.append(_error(
                f'Missing file for "{name}": {entry.installed_to}',
                f"Run `planmode install {name}` to reinstall",
            ))
            continue
        try:
            actual = hash_file(path)
        except OSError as exc:
            issues.append(_error(
                f'Cannot read file for "{name}": {entry.installed_to} ({exc})',
                f"Check file permissions, or run `planmode install {name}`",
            ))
            continue
        if actual != entry.content_hash:
            issues.append(_warning(
                f'Content hash mismatch for "{name}" at {entry.installed_to}',
                f"File was modified locally. Run `planmode update {name}` "
                "to restore, or ignore if intentional",
            ))
    return issues


def _check_ledger(
    project_root: Path,
    installed_plans: list[str],
    imports: list[str],
) -> list[DiagnosticIssue]:
    issues: list[DiagnosticIssue] = []

    for name in installed_plans:
        if name not in imports:
            issues.append(_error(
                f'Plan "{name}" is installed but missing from '
                f"{LEDGER_DOCUMENT_NAME} imports",
                f"Add `{reference_line(name)}` to the {SECTION_HEADING} "
                f"section of {LEDGER_DOCUMENT_NAME}",
            ))

    for name in imports:
        if name in installed_plans:
            continue
        relative = install_path(name, PackageType.PLAN)
        try:
            exists = resolve_in_project(project_root, relative).is_file()
        except FileSystemError:
            exists = False
        if exists:
            issues.append(_warning(
                f'{LEDGER_DOCUMENT_NAME} imports "{name}" but it\'s not '
                f"tracked in {LOCKFILE_NAME}",
                "This plan was added manually. No action needed unless "
                "you want lockfile tracking.",
            ))
        else:
            issues.append(_error(
                f'{LEDGER_DOCUMENT_NAME} imports "{name}" but the file '
                f"doesn't exist at {relative}",
                f"Run `planmode install {name}` or remove the import from "
                f"{LEDGER_DOCUMENT_NAME}",
            ))
    return issues


def _check_untracked_plans(project_root: Path, lockfile: Lockfile) -> list[DiagnosticIssue]:
    issues: list[DiagnosticIssue] = []
    try:
        directory = plans_dir(project_root)
    except FileSystemError as exc:
        return [_warning(f"Skipped the untracked plan scan: {exc}")]
    if not directory.is_dir():
        return []
    try:
        files = sorted(p for p in directory.iterdir() if p.suffix == PACKAGE_SUFFIX)
    except OSError as exc:
        logger.warning("Could not scan %s: %s", directory, exc)
        return []
    for path in files:
        if path.stem not in lockfile:
            issues.append(_warning(
                f"Untracked plan file: {install_path(path.stem, PackageType.PLAN)}",
                "This file isn't managed by planmode. Ignore if intentional.",
            ))
    return issues


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_doctor(project_root: Path) -> DoctorResult:
    """Audit the project at *project_root*.

    Args:
        project_root: The project directory.

    Returns:
        Every issue found, the number of lock entries checked, and whether
        the project is healthy (no error-severity issue).
    """
    project_root = Path(project_root)
    lockfile = LockfileStore(project_root).read()
    ledger = ImportLedger(project_root)

    issues = _check_entries(project_root, lockfile)

    try:
        imports = ledger.list()
    except FileSystemError as exc:
        imports = []
        issues.append(_error(
            f"Cannot read {LEDGER_DOCUMENT_NAME}: {exc}",
            f"Check that {LEDGER_DOCUMENT_NAME} is readable UTF-8 text",
        ))

    installed_plans = [
        name for name, entry in lockfile.items() if entry.type is PackageType.PLAN
    ]
    issues.extend(_check_ledger(project_root, installed_plans, imports))

    if installed_plans and not ledger.exists:
        issues.append(_error(
            f"{LEDGER_DOCUMENT_NAME} is missing but plans are installed",
            "Run `planmode install <any-plan>` to recreate it, or create it "
            f"manually with a {SECTION_HEADING} section",
        ))

    issues.extend(_check_untracked_plans(project_root, lockfile))

    result = DoctorResult(issues=issues, packages_checked=len(lockfile))
    logger.debug(
        "Doctor checked %d package(s): %d error(s), %d warning(s)",
        result.packages_checked, len(result.errors), len(result.warnings),
    )
    return result
