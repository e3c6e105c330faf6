"""Version resolution: pick the highest candidate satisfying a constraint.

``resolve`` is a pure function over a list of candidate versions. Each
dependency edge is resolved independently against its own constraint; the
installer does not negotiate between sibling constraints on the same
package. ``find_highest_satisfying`` answers the joint question for callers
that want it, but the installer does not use it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from planmode.core.resolver.constraints import (
    VersionRange,
    is_valid_version,
    version_key,
)
from planmode.exceptions import VersionNotFoundError

if TYPE_CHECKING:
    from planmode.registry.base import PackageFetcher, PackageMetadata

logger = logging.getLogger(__name__)


def _matching(versions: list[str], ranges: list[VersionRange]) -> list[str]:
    candidates = []
    for v in versions:
        if not is_valid_version(v):
            logger.debug("Ignoring malformed candidate version %r", v)
            continue
        if all(r.satisfies(v) for r in ranges):
            candidates.append(v)
    return sorted(candidates, key=version_key)


def resolve(
    versions: list[str],
    constraint: str | None = None,
    *,
    name: str | None = None,
) -> str:
    """Return the maximum version in *versions* that satisfies *constraint*.

    Args:
        versions: Candidate version strings, in any order.
        constraint: Constraint string; None, ``*`` or ``latest`` accept any.
        name: Package name, used only in the error message.

    Returns:
        The highest satisfying version under triple-wise comparison.

    Raises:
        VersionNotFoundError: If no candidate satisfies the constraint. The
            error enumerates every candidate.
        InvalidConstraintError: If *constraint* is malformed.
    """
    version_range = VersionRange.parse(constraint)
    matching = _matching(list(versions), [version_range])
    if not matching:
        raise VersionNotFoundError(version_range.raw, list(versions), name=name)
    return matching[-1]


def find_highest_satisfying(versions: list[str], constraints: list[str]) -> str | None:
    """Return the highest version satisfying every constraint, or None.

    This is the joint form of ``resolve``: useful for reporting whether the
    constraints different dependents place on one package can all be met.
    """
    ranges = [VersionRange.parse(c) for c in constraints]
    matching = _matching(list(versions), ranges)
    return matching[-1] if matching else None


@dataclass(frozen=True)
class ResolvedVersion:
    """A concrete version chosen for a package, with the metadata used."""

    name: str
    version: str
    metadata: PackageMetadata


async def resolve_version(
    fetcher: PackageFetcher,
    name: str,
    constraint: str | None = None,
) -> ResolvedVersion:
    """Fetch a package's metadata and resolve *constraint* against it.

    With no constraint (or ``*`` / ``latest``) the registry's declared
    latest version wins, even if the versions list is out of order.

    Raises:
        PackageNotFoundError: From the fetcher, if the package is unknown.
        VersionNotFoundError: If no published version satisfies the
            constraint.
    """
    metadata = await fetcher.fetch_package_metadata(name)
    if VersionRange.parse(constraint).is_any and metadata.latest_version:
        return ResolvedVersion(name, metadata.latest_version, metadata)
    version = resolve(metadata.versions, constraint, name=name)
    return ResolvedVersion(name, version, metadata)
