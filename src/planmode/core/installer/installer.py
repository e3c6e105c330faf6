"""Install, uninstall and update packages in a project directory.

Each package goes through the same steps, every one awaited before the
next::

    locked? -> resolve -> fetch manifest -> fetch content -> render
            -> conflict check -> write -> ledger (plans) -> lockfile

then its declared dependencies are queued. Dependencies are processed from
an explicit worklist with a visited set, so a cycle between two packages
terminates instead of recursing forever. Each dependency edge is resolved on
its own constraint; sibling constraints on the same package are not
negotiated jointly.

Any failure aborts the whole run. Packages completed before the failure stay
on disk and in the lockfile; re-running the install converges because
unchanged content is detected by hash.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from planmode.core.hashing import compute_content_hash, hash_file
from planmode.core.installer.models import (
    ContentConflict,
    InstalledPackage,
    InstallOptions,
    InstallReport,
)
from planmode.core.ledger import ImportLedger
from planmode.core.lockfile import LockEntry, LockfileStore
from planmode.core.manifest import MANIFEST_FILENAME, Manifest, PackageType, parse_manifest
from planmode.core.paths import install_path, resolve_in_project
from planmode.core.resolver import parse_dep_string, resolve_version
from planmode.core.template import collect_values, render
from planmode.exceptions import (
    FileSystemError,
    InvalidManifestError,
    PackageNotFoundError,
    PlanmodeError,
)
from planmode.registry.base import PackageFetcher, SourceLocation

logger = logging.getLogger(__name__)

_WorkItem = tuple[str, InstallOptions]


class Installer:
    """Orchestrates resolver, fetcher, renderer, lockfile and ledger.

    Args:
        project_root: Directory the packages are installed into.
        fetcher: Source of package metadata and content.
    """

    def __init__(self, project_root: Path, fetcher: PackageFetcher) -> None:
        self.project_root = Path(project_root)
        self.fetcher = fetcher
        self.lockfile = LockfileStore(self.project_root)
        self.ledger = ImportLedger(self.project_root)

    # -- Install --------------------------------------------------------------

    async def install(
        self, name: str, options: InstallOptions | None = None
    ) -> InstallReport:
        """Install *name* and, transitively, its declared dependencies.

        Args:
            name: Package name, optionally scoped (``@scope/name``).
            options: Version constraint, placement override, and variables.

        Returns:
            What was installed, skipped, and overwritten.

        Raises:
            PackageNotFoundError: If a package is unknown to the registry.
            VersionNotFoundError: If no version satisfies a constraint.
            InvalidManifestError: If a fetched manifest fails validation.
            MissingVariableError: If a required variable has no value.
            NetworkError: If fetching fails.
            FileSystemError: If a file cannot be written.
        """
        report = InstallReport()
        visited: set[str] = set()
        worklist: list[_WorkItem] = [(name, options or InstallOptions())]

        while worklist:
            pkg_name, pkg_options = worklist.pop()
            if pkg_name in visited:
                logger.debug("Skipping %s: already handled in this run", pkg_name)
                continue
            visited.add(pkg_name)

            children = await self._install_one(pkg_name, pkg_options, report)
            # Reversed so the stack pops dependencies in declaration order.
            worklist.extend(reversed(children))

        return report

    async def _install_one(
        self, name: str, options: InstallOptions, report: InstallReport
    ) -> list[_WorkItem]:
        locked = self.lockfile.get_entry(name)
        if locked is not None and options.version in (None, locked.version):
            if self._locked_file_present(locked):
                logger.debug("%s@%s already installed", name, locked.version)
                report.skipped.append(name)
                return []
            logger.info("%s is locked but %s is missing, reinstalling", name, locked.installed_to)
            options = replace(
                options,
                version=locked.version,
                force_rule=options.force_rule or locked.type is PackageType.RULE,
            )

        logger.info("Resolving %s...", name)
        resolved = await resolve_version(self.fetcher, name, options.version)
        version = resolved.version
        version_meta = await self.fetcher.fetch_version_metadata(name, version)
        source = version_meta.source

        logger.info("Fetching %s@%s...", name, version)
        manifest = await self._fetch_manifest(source)
        if manifest.name != name:
            raise InvalidManifestError(
                [f"Manifest name {manifest.name!r} does not match requested package {name!r}"]
            )
        content = await self._fetch_content(source, manifest)

        if manifest.is_templated:
            prompt = None if options.no_input else options.prompt
            values = collect_values(manifest.variables, options.variables, prompt)
            content = render(content, values)

        pkg_type = PackageType.RULE if options.force_rule else manifest.type
        relative = install_path(name, pkg_type)
        new_hash = compute_content_hash(content)

        if self._write_content(name, relative, content, new_hash, report):
            logger.info("Installed %s@%s -> %s", name, version, relative)
        report.installed.append(InstalledPackage(name, version, pkg_type, relative))

        if pkg_type is PackageType.PLAN and self.ledger.add(name):
            logger.debug("Added %s to %s", name, self.ledger.path.name)

        self.lockfile.add_entry(
            name,
            LockEntry(
                version=version,
                type=pkg_type,
                source=source.repository,
                tag=source.tag,
                sha=source.sha,
                content_hash=new_hash,
                installed_to=relative,
            ),
        )

        children = []
        for dep, _declared_type in manifest.dependencies.edges():
            spec = parse_dep_string(dep)
            constraint = spec.constraint if spec.is_pinned else None
            children.append((spec.name, options.for_dependency(constraint)))
        return children

    def _locked_file_present(self, locked: LockEntry) -> bool:
        return resolve_in_project(self.project_root, locked.installed_to).is_file()

    async def _fetch_manifest(self, source: SourceLocation) -> Manifest:
        raw = await self.fetcher.fetch_file(source, MANIFEST_FILENAME)
        return parse_manifest(raw).unwrap()

    async def _fetch_content(self, source: SourceLocation, manifest: Manifest) -> str:
        if manifest.content:
            return manifest.content
        if manifest.content_file:
            return await self.fetcher.fetch_file(source, manifest.content_file)
        raise InvalidManifestError(
            ["Package must specify either content or content_file"]
        )

    def _write_content(
        self,
        name: str,
        relative: str,
        content: str,
        new_hash: str,
        report: InstallReport,
    ) -> bool:
        """Write *content* unless identical content is already in place.

        Returns:
            True if the file was written, False if it already matched.
        """
        target = resolve_in_project(self.project_root, relative)
        if target.is_file():
            try:
                existing_hash = hash_file(target)
            except OSError as exc:
                raise FileSystemError(f"Failed to read {target}: {exc}") from exc
            if existing_hash == new_hash:
                logger.debug("%s already installed (identical content)", name)
                return False
            logger.warning("Overwriting %s with new content", relative)
            report.warnings.append(
                ContentConflict(name, relative, existing_hash, new_hash)
            )

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("w", encoding="utf-8", newline="") as fh:
                fh.write(content)
        except OSError as exc:
            raise FileSystemError(f"Failed to write {relative}: {exc}") from exc
        return True

    # -- Uninstall ------------------------------------------------------------

    def uninstall(self, name: str) -> LockEntry:
        """Remove an installed package's file, ledger reference and lock entry.

        Returns:
            The lock entry that was removed.

        Raises:
            PackageNotFoundError: If *name* is not in the lockfile.
            FileSystemError: If the file cannot be removed.
        """
        locked = self.lockfile.get_entry(name)
        if locked is None:
            raise PackageNotFoundError(name, f"Package '{name}' is not installed.")

        target = resolve_in_project(self.project_root, locked.installed_to)
        try:
            target.unlink()
            logger.info("Removed %s", locked.installed_to)
        except FileNotFoundError:
            logger.debug("%s was already gone", locked.installed_to)
        except OSError as exc:
            raise FileSystemError(f"Failed to remove {locked.installed_to}: {exc}") from exc

        if locked.type is PackageType.PLAN and self.ledger.remove(name):
            logger.debug("Removed %s from %s", name, self.ledger.path.name)

        self.lockfile.remove_entry(name)
        logger.info("Uninstalled %s", name)
        return locked

    # -- Update ---------------------------------------------------------------

    async def update(self, name: str, options: InstallOptions | None = None) -> bool:
        """Move an installed package to its latest version.

        Returns:
            True if a newer version was installed, False if already current.

        Raises:
            PackageNotFoundError: If *name* is not installed or unknown.
        """
        locked = self.lockfile.get_entry(name)
        if locked is None:
            raise PackageNotFoundError(name, f"Package '{name}' is not installed.")

        resolved = await resolve_version(self.fetcher, name)
        if resolved.version == locked.version:
            logger.debug("%s@%s is already up to date", name, locked.version)
            return False

        logger.info("Updating %s: %s -> %s", name, locked.version, resolved.version)
        base = options or InstallOptions()
        self.uninstall(name)
        await self.install(
            name,
            InstallOptions(
                version=resolved.version,
                force_rule=base.force_rule or locked.type is PackageType.RULE,
                no_input=base.no_input,
                variables=dict(base.variables),
                prompt=base.prompt,
            ),
        )
        return True

    async def update_all(self, options: InstallOptions | None = None) -> list[str]:
        """Update every installed package.

        A failure for one package is logged and does not stop the others.

        Returns:
            Names of the packages that moved to a newer version.
        """
        updated: list[str] = []
        for name in self.lockfile.read().names:
            try:
                if await self.update(name, options):
                    updated.append(name)
            except PlanmodeError as exc:
                logger.warning("Failed to update %s: %s", name, exc)
        return updated
