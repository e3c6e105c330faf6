"""Tests for version parsing, comparison and constraint matching.

Validates:
    - X.Y.Z parsing and triple-wise numeric ordering.
    - Each constraint operator: exact, caret, tilde, >=, and any.
    - Malformed versions and constraints raise InvalidConstraintError.
    - Dependency strings split on the last ``@`` so scopes survive.
"""

from __future__ import annotations

import pytest

from planmode.core.resolver import (
    DependencySpec,
    RangeOperator,
    VersionRange,
    compare_versions,
    is_valid_version,
    parse_dep_string,
    parse_version,
)
from planmode.exceptions import InvalidConstraintError


# ---------------------------------------------------------------------------
# Version parsing and comparison
# ---------------------------------------------------------------------------


class TestParseVersion:
    """Tests for parse_version and is_valid_version."""

    def test_parses_triple(self) -> None:
        assert parse_version("1.2.3") == (1, 2, 3)

    def test_multi_digit_components(self) -> None:
        assert parse_version("10.20.300") == (10, 20, 300)

    @pytest.mark.parametrize("bad", ["1.2", "1.2.3.4", "v1.2.3", "1.2.3-beta", "", "a.b.c"])
    def test_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(InvalidConstraintError):
            parse_version(bad)
        assert not is_valid_version(bad)

    def test_constraint_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_version("nope")


class TestCompareVersions:
    """Ordering is numeric per component, not lexicographic."""

    def test_numeric_not_string_order(self) -> None:
        assert compare_versions("1.10.0", "1.9.0") > 0

    def test_equal(self) -> None:
        assert compare_versions("2.0.0", "2.0.0") == 0

    def test_major_dominates(self) -> None:
        assert compare_versions("1.99.99", "2.0.0") < 0


# ---------------------------------------------------------------------------
# VersionRange
# ---------------------------------------------------------------------------


class TestVersionRangeParse:
    """Tests for VersionRange.parse operator detection."""

    @pytest.mark.parametrize(
        "constraint, operator",
        [
            ("1.2.3", RangeOperator.EXACT),
            ("^1.2.3", RangeOperator.CARET),
            ("~1.2.3", RangeOperator.TILDE),
            (">=1.2.3", RangeOperator.GTE),
            ("*", RangeOperator.ANY),
            ("latest", RangeOperator.ANY),
            ("", RangeOperator.ANY),
            (None, RangeOperator.ANY),
        ],
    )
    def test_operator(self, constraint: str | None, operator: RangeOperator) -> None:
        assert VersionRange.parse(constraint).operator is operator

    def test_keeps_raw_text(self) -> None:
        assert str(VersionRange.parse("^1.2.3")) == "^1.2.3"

    @pytest.mark.parametrize("bad", ["^1.2", "~x.y.z", ">=1", "1.2.3.4", "<1.0.0"])
    def test_malformed_constraint(self, bad: str) -> None:
        with pytest.raises(InvalidConstraintError, match="Invalid constraint"):
            VersionRange.parse(bad)


class TestSatisfies:
    """Matching rules for each operator."""

    def test_exact_matches_only_itself(self) -> None:
        r = VersionRange.parse("1.2.3")
        assert r.satisfies("1.2.3")
        assert not r.satisfies("1.2.4")
        assert not r.satisfies("1.2.2")

    @pytest.mark.parametrize("version", ["1.2.3", "1.2.9", "1.3.0", "1.9.0"])
    def test_caret_accepts(self, version: str) -> None:
        assert VersionRange.parse("^1.2.3").satisfies(version)

    @pytest.mark.parametrize("version", ["2.0.0", "1.2.2", "1.1.9", "0.9.0"])
    def test_caret_rejects(self, version: str) -> None:
        assert not VersionRange.parse("^1.2.3").satisfies(version)

    def test_tilde(self) -> None:
        r = VersionRange.parse("~1.2.3")
        assert r.satisfies("1.2.4")
        assert r.satisfies("1.2.3")
        assert not r.satisfies("1.3.0")
        assert not r.satisfies("1.2.2")

    def test_gte_is_triple_wise(self) -> None:
        r = VersionRange.parse(">=1.2.3")
        assert r.satisfies("1.2.3")
        assert r.satisfies("1.10.0")
        assert r.satisfies("5.0.0")
        assert not r.satisfies("1.2.2")

    def test_any_accepts_everything(self) -> None:
        assert VersionRange.parse("*").satisfies("0.0.1")
        assert VersionRange.parse("*").is_any


# ---------------------------------------------------------------------------
# Dependency strings
# ---------------------------------------------------------------------------


class TestParseDepString:
    """Splitting ``name@constraint`` on the last ``@``."""

    def test_bare_name(self) -> None:
        assert parse_dep_string("typescript-strict") == DependencySpec("typescript-strict", "*")

    def test_name_with_constraint(self) -> None:
        spec = parse_dep_string("typescript-strict@^1.0.0")
        assert spec.name == "typescript-strict"
        assert spec.constraint == "^1.0.0"
        assert spec.is_pinned

    def test_scoped_name_without_constraint(self) -> None:
        spec = parse_dep_string("@acme/deploy")
        assert spec.name == "@acme/deploy"
        assert spec.constraint == "*"
        assert not spec.is_pinned

    def test_scoped_name_with_constraint(self) -> None:
        spec = parse_dep_string("@acme/deploy@~2.1.0")
        assert spec == DependencySpec("@acme/deploy", "~2.1.0")

    def test_trailing_at_means_any(self) -> None:
        assert parse_dep_string("pkg@").constraint == "*"

    def test_str_round_trips(self) -> None:
        assert str(parse_dep_string("@acme/deploy@1.0.0")) == "@acme/deploy@1.0.0"
        assert str(parse_dep_string("pkg")) == "pkg"
