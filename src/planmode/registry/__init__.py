"""Package registries: metadata records and content fetchers.

Public API::

    from planmode.registry import PackageFetcher, PackageMetadata, VersionMetadata
    from planmode.registry.github import GitHubRegistry
"""

from __future__ import annotations

from planmode.registry.base import (
    PackageFetcher,
    PackageMetadata,
    PackageSummary,
    SourceLocation,
    VersionMetadata,
)

__all__ = [
    "PackageFetcher",
    "PackageMetadata",
    "PackageSummary",
    "SourceLocation",
    "VersionMetadata",
]
