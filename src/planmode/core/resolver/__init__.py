"""Version constraints and per-edge version resolution.

All public names are re-exported here, so callers can write
``from planmode.core.resolver import resolve, parse_dep_string``.
"""

from planmode.core.resolver.constraints import (
    ANY_CONSTRAINT,
    DependencySpec,
    RangeOperator,
    VersionRange,
    compare_versions,
    is_valid_version,
    parse_dep_string,
    parse_version,
    version_key,
)
from planmode.core.resolver.resolver import (
    ResolvedVersion,
    find_highest_satisfying,
    resolve,
    resolve_version,
)

__all__ = [
    "ANY_CONSTRAINT",
    "DependencySpec",
    "RangeOperator",
    "ResolvedVersion",
    "VersionRange",
    "compare_versions",
    "find_highest_satisfying",
    "is_valid_version",
    "parse_dep_string",
    "parse_version",
    "resolve",
    "resolve_version",
    "version_key",
]
