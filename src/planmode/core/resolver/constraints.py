"""Version parsing, comparison, and range constraints.

Versions are plain ``X.Y.Z`` triples of non-negative integers; there are no
pre-release or build components. Ordering is triple-wise numeric: major,
then minor, then patch.

Constraint grammar:

- ``X.Y.Z``   exact match
- ``^X.Y.Z``  same major; minor greater, or minor equal and patch >= target
- ``~X.Y.Z``  same major and minor; patch >= target
- ``>=X.Y.Z`` triple-wise greater than or equal
- ``*``, ``latest`` or absent: any version

Dependency strings are ``name`` or ``name@constraint``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from planmode.exceptions import InvalidConstraintError


# ---------------------------------------------------------------------------
# Version comparison utilities
# ---------------------------------------------------------------------------

_VERSION_RE = re.compile(r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)$")

VersionTuple = tuple[int, int, int]

ANY_CONSTRAINT = "*"
LATEST = "latest"


def parse_version(version: str) -> VersionTuple:
    """Parse ``X.Y.Z`` into a comparable (major, minor, patch) tuple.

    Raises:
        InvalidConstraintError: If the string is not three dot-separated
            non-negative integers.
    """
    m = _VERSION_RE.match(version.strip())
    if not m:
        raise InvalidConstraintError(f"Invalid version: {version!r}")
    return int(m.group("major")), int(m.group("minor")), int(m.group("patch"))


def is_valid_version(version: str) -> bool:
    return bool(_VERSION_RE.match(version.strip()))


def compare_versions(a: str, b: str) -> int:
    """Three-way compare two version strings: negative, zero, or positive."""
    ta, tb = parse_version(a), parse_version(b)
    return (ta > tb) - (ta < tb)


def version_key(version: str) -> VersionTuple:
    """Sort key for version strings, ascending."""
    return parse_version(version)


# ---------------------------------------------------------------------------
# VersionRange: a parsed constraint
# ---------------------------------------------------------------------------


class RangeOperator(str, Enum):
    EXACT = "exact"
    CARET = "caret"
    TILDE = "tilde"
    GTE = "gte"
    ANY = "any"


_PREFIXES: tuple[tuple[str, RangeOperator], ...] = (
    (">=", RangeOperator.GTE),
    ("^", RangeOperator.CARET),
    ("~", RangeOperator.TILDE),
)


@dataclass(frozen=True)
class VersionRange:
    """A parsed version constraint.

    Attributes:
        operator: Which comparison the range performs.
        target: The (major, minor, patch) the operator compares against.
            ``(0, 0, 0)`` for ``ANY``.
        raw: The constraint as written.
    """

    operator: RangeOperator
    target: VersionTuple = (0, 0, 0)
    raw: str = ANY_CONSTRAINT

    @classmethod
    def parse(cls, constraint: str | None) -> VersionRange:
        """Parse a constraint string.

        ``None``, the empty string, ``*`` and ``latest`` all mean "any".

        Raises:
            InvalidConstraintError: If the version part is malformed.
        """
        text = (constraint or "").strip()
        if text in ("", ANY_CONSTRAINT, LATEST):
            return cls(RangeOperator.ANY, raw=text or ANY_CONSTRAINT)

        for prefix, op in _PREFIXES:
            if text.startswith(prefix):
                return cls(op, _parse_target(text[len(prefix):], text), text)
        return cls(RangeOperator.EXACT, _parse_target(text, text), text)

    @property
    def is_any(self) -> bool:
        return self.operator is RangeOperator.ANY

    def satisfies(self, version: str | VersionTuple) -> bool:
        """Check whether a version satisfies this range.

        Raises:
            InvalidConstraintError: If *version* is not a valid version.
        """
        v = parse_version(version) if isinstance(version, str) else version
        major, minor, patch = self.target

        if self.operator is RangeOperator.ANY:
            return True
        if self.operator is RangeOperator.EXACT:
            return v == self.target
        if self.operator is RangeOperator.CARET:
            if v[0] != major:
                return False
            if v[1] > minor:
                return True
            return v[1] == minor and v[2] >= patch
        if self.operator is RangeOperator.TILDE:
            return v[0] == major and v[1] == minor and v[2] >= patch
        if self.operator is RangeOperator.GTE:
            return v >= self.target
        raise InvalidConstraintError(f"Unknown operator: {self.operator!r}")  # pragma: no cover

    def __str__(self) -> str:
        return self.raw


def _parse_target(version: str, constraint: str) -> VersionTuple:
    try:
        return parse_version(version)
    except InvalidConstraintError:
        raise InvalidConstraintError(f"Invalid constraint: {constraint!r}") from None


# ---------------------------------------------------------------------------
# Dependency strings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DependencySpec:
    """A dependency edge: package name plus the constraint it must satisfy."""

    name: str
    constraint: str = ANY_CONSTRAINT

    @property
    def is_pinned(self) -> bool:
        return self.constraint != ANY_CONSTRAINT

    def __str__(self) -> str:
        if self.is_pinned:
            return f"{self.name}@{self.constraint}"
        return self.name


def parse_dep_string(dep: str) -> DependencySpec:
    """Split ``name@constraint`` on its last ``@``.

    An ``@`` at position 0 is a scope prefix, not a separator, so
    ``@acme/deploy`` parses as a bare name while ``@acme/deploy@^1.0.0``
    yields ``("@acme/deploy", "^1.0.0")``. A missing constraint is ``*``.
    """
    dep = dep.strip()
    at = dep.rfind("@")
    if at > 0:
        name, constraint = dep[:at], dep[at + 1:]
        return DependencySpec(name, constraint or ANY_CONSTRAINT)
    return DependencySpec(dep)
