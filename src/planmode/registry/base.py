"""Base classes and data models for package registries.

Defines the ``PackageFetcher`` abstract base class that the installer
depends on, along with the metadata records a registry serves. Concrete
fetchers (``GitHubRegistry``) implement the three async primitives; tests
substitute an in-memory implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from planmode.core.manifest.models import PackageType, VariableDefinition
from planmode.core.manifest.validation import variable_from_dict


_TYPE_VALUES = frozenset(t.value for t in PackageType)


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceLocation:
    """A tagged, content-addressable location of a package release.

    Attributes:
        repository: Repository identifier (``github.com/org/repo``).
        tag: Git tag of the release (e.g., ``v1.2.0``).
        sha: Commit sha the tag resolved to at publish time.
        path: Optional sub-directory holding the package within the repo.
    """

    repository: str
    tag: str
    sha: str = ""
    path: str | None = None

    def file_path(self, relative: str) -> str:
        """Return *relative* prefixed with the package sub-directory."""
        if self.path:
            return f"{self.path.rstrip('/')}/{relative}"
        return relative


@dataclass(frozen=True)
class PackageMetadata:
    """Registry record for a package across all its versions.

    Attributes:
        name: Package name.
        latest_version: Version the registry considers newest.
        versions: Every published version.
        type: Declared package type, if the registry reports it.
        dependencies: Raw ``{"rules": [...], "plans": [...]}`` of the latest
            version.
        variables: Variable declarations of the latest version.
    """

    name: str
    latest_version: str
    versions: list[str] = field(default_factory=list)
    type: PackageType | None = None
    description: str = ""
    author: str = ""
    license: str = ""
    repository: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    models: list[str] = field(default_factory=list)
    downloads: int = 0
    dependencies: dict[str, list[str]] = field(default_factory=dict)
    variables: dict[str, VariableDefinition] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageMetadata:
        raw_type = data.get("type")
        return cls(
            name=str(data.get("name", "")),
            latest_version=str(data.get("latest_version", "")),
            versions=[str(v) for v in data.get("versions") or []],
            type=PackageType(raw_type) if raw_type in _TYPE_VALUES else None,
            description=str(data.get("description", "")),
            author=str(data.get("author", "")),
            license=str(data.get("license", "")),
            repository=str(data.get("repository", "")),
            category=str(data.get("category", "")),
            tags=list(data.get("tags") or []),
            models=list(data.get("models") or []),
            downloads=int(data.get("downloads") or 0),
            dependencies={
                k: list(v or []) for k, v in (data.get("dependencies") or {}).items()
            },
            variables={
                name: variable_from_dict(raw)
                for name, raw in (data.get("variables") or {}).items()
                if isinstance(raw, dict)
            },
        )


@dataclass(frozen=True)
class VersionMetadata:
    """Registry record for one published version.

    Attributes:
        version: The version string.
        source: Where the release lives.
        files: Files included in the release.
        content_hash: Registry-recorded hash of the package content.
    """

    version: str
    source: SourceLocation
    files: list[str] = field(default_factory=list)
    content_hash: str = ""
    published_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VersionMetadata:
        source = data.get("source") or {}
        return cls(
            version=str(data.get("version", "")),
            source=SourceLocation(
                repository=str(source.get("repository", "")),
                tag=str(source.get("tag", "")),
                sha=str(source.get("sha", "")),
                path=source.get("path") or None,
            ),
            files=[str(f) for f in data.get("files") or []],
            content_hash=str(data.get("content_hash", "")),
            published_at=str(data.get("published_at", "")),
        )


@dataclass(frozen=True)
class PackageSummary:
    """One row of the registry index, used by search."""

    name: str
    version: str
    type: str = ""
    description: str = ""
    author: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    downloads: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageSummary:
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            type=str(data.get("type", "")),
            description=str(data.get("description", "")),
            author=str(data.get("author", "")),
            category=str(data.get("category", "")),
            tags=list(data.get("tags") or []),
            downloads=int(data.get("downloads") or 0),
        )

    def matches(self, query: str) -> bool:
        haystack = " ".join([self.name, self.description, self.author, *self.tags])
        return query.lower() in haystack.lower()


# ---------------------------------------------------------------------------
# Abstract fetcher
# ---------------------------------------------------------------------------


class PackageFetcher(ABC):
    """Source of package metadata and content.

    Timeouts and retries are the fetcher's concern; callers simply await
    each call and let failures propagate.
    """

    @abstractmethod
    async def fetch_package_metadata(self, name: str) -> PackageMetadata:
        """Return the registry record for *name*.

        Raises:
            PackageNotFoundError: If the registry has no such package.
            NetworkError: On transport failures.
        """

    @abstractmethod
    async def fetch_version_metadata(self, name: str, version: str) -> VersionMetadata:
        """Return the record for one version of *name*.

        Raises:
            VersionNotFoundError: If the version is not published.
            NetworkError: On transport failures.
        """

    @abstractmethod
    async def fetch_file(self, source: SourceLocation, path: str) -> str:
        """Return the text of *path* inside the release at *source*.

        *path* is relative to the package directory; fetchers apply
        ``source.path`` themselves (see ``SourceLocation.file_path``).

        Raises:
            NotFoundError: If the file does not exist in the release.
            NetworkError: On transport failures.
        """
