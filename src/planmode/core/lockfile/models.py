"""Lockfile data model -- one ``LockEntry`` per installed package.

Pure data holders with no I/O, safe to import from anywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from planmode.core.manifest.models import PackageType


@dataclass(frozen=True)
class LockEntry:
    """The recorded install state of a single package.

    Attributes:
        version: The exact version installed (e.g., "1.2.0").
        type: Placement the package was installed under. May differ from
            the manifest's type when a rule override was used.
        source: Repository the content came from (e.g., "github.com/org/repo").
        tag: Git tag of the release.
        sha: Commit sha the tag pointed at.
        content_hash: "sha256:<hex>" of the content as written to disk.
        installed_to: Project-relative path of the installed file.
    """

    version: str
    type: PackageType
    source: str
    tag: str
    sha: str
    content_hash: str
    installed_to: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "type": self.type.value,
            "source": self.source,
            "tag": self.tag,
            "sha": self.sha,
            "content_hash": self.content_hash,
            "installed_to": self.installed_to,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockEntry:
        """Build an entry from its serialized mapping.

        Raises:
            ValueError: If ``type`` is not a known package type.
            KeyError: If a required field is missing.
        """
        return cls(
            version=str(data["version"]),
            type=PackageType(data["type"]),
            source=str(data.get("source", "")),
            tag=str(data.get("tag", "")),
            sha=str(data.get("sha", "")),
            content_hash=str(data.get("content_hash", "")),
            installed_to=str(data["installed_to"]),
        )
