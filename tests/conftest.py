"""Shared fixtures for planmode tests.

``FakeRegistry`` is an in-memory ``PackageFetcher``: tests publish
packages into it and the installer fetches them back without any network.
"""

from __future__ import annotations

import pathlib
from typing import Any

import pytest
import yaml

from planmode.core.installer import Installer
from planmode.core.resolver import version_key
from planmode.exceptions import NetworkError, NotFoundError, PackageNotFoundError, VersionNotFoundError
from planmode.registry.base import (
    PackageFetcher,
    PackageMetadata,
    SourceLocation,
    VersionMetadata,
)


def _repo_for(name: str) -> str:
    return "github.com/test/" + name.lstrip("@").replace("/", "-")


class FakeRegistry(PackageFetcher):
    """In-memory registry recording every call it receives."""

    def __init__(self) -> None:
        self.versions: dict[str, list[str]] = {}
        self.files: dict[tuple[str, str], dict[str, str]] = {}
        self.latest: dict[str, str] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, ...]] = []

    def publish(
        self,
        name: str,
        version: str = "1.0.0",
        *,
        type: str = "plan",
        content: str | None = None,
        content_file: str | None = None,
        file_content: str = "",
        dependencies: dict[str, list[str]] | None = None,
        variables: dict[str, dict[str, Any]] | None = None,
        raw_manifest: str | None = None,
    ) -> None:
        """Add a release of *name*. Inline ``content`` is the default."""
        manifest: dict[str, Any] = {"name": name, "version": version, "type": type}
        files: dict[str, str] = {}
        if content_file:
            manifest["content_file"] = content_file
            files[content_file] = file_content
        else:
            manifest["content"] = content if content is not None else f"# {name} {version}\n"
        if dependencies:
            manifest["dependencies"] = dependencies
        if variables:
            manifest["variables"] = variables
        files["planmode.yaml"] = raw_manifest or yaml.safe_dump(manifest, sort_keys=False)

        self.files[(_repo_for(name), f"v{version}")] = files
        published = self.versions.setdefault(name, [])
        if version not in published:
            published.append(version)
        self.latest[name] = max(published, key=version_key)

    async def fetch_package_metadata(self, name: str) -> PackageMetadata:
        self.calls.append(("metadata", name))
        if name in self.failing:
            raise NetworkError(f"Simulated network failure for {name}")
        if name not in self.versions:
            raise PackageNotFoundError(name)
        return PackageMetadata(
            name=name,
            latest_version=self.latest[name],
            versions=list(self.versions[name]),
        )

    async def fetch_version_metadata(self, name: str, version: str) -> VersionMetadata:
        self.calls.append(("version", name, version))
        if version not in self.versions.get(name, []):
            raise VersionNotFoundError(version, self.versions.get(name, []), name=name)
        return VersionMetadata(
            version=version,
            source=SourceLocation(
                repository=_repo_for(name), tag=f"v{version}", sha="abc123"
            ),
        )

    async def fetch_file(self, source: SourceLocation, path: str) -> str:
        self.calls.append(("file", source.repository, source.tag, path))
        try:
            return self.files[(source.repository, source.tag)][path]
        except KeyError:
            raise NotFoundError(f"File not found: {path}") from None

    def installed_names(self) -> list[str]:
        """Names whose content was fetched, in fetch order."""
        return [c[1] for c in self.calls if c[0] == "version"]


@pytest.fixture
def registry() -> FakeRegistry:
    """An empty in-memory registry."""
    return FakeRegistry()


@pytest.fixture
def project(tmp_path: pathlib.Path) -> pathlib.Path:
    """An empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def installer(project: pathlib.Path, registry: FakeRegistry) -> Installer:
    """An installer wired to the in-memory registry."""
    return Installer(project, registry)
