"""Tests for content hashing and install path derivation."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

import pytest

from planmode.core.hashing import compute_content_hash, hash_file
from planmode.core.manifest import PackageType
from planmode.core.paths import (
    install_dir,
    install_path,
    ledger_document_path,
    lockfile_path,
    plans_dir,
    resolve_in_project,
)
from planmode.exceptions import FileSystemError


class TestContentHash:
    """sha256:<hex> over UTF-8 content."""

    def test_matches_manual_sha256(self) -> None:
        content = "# Plan ✓\n"
        expected = "sha256:" + hashlib.sha256(content.encode("utf-8")).hexdigest()
        assert compute_content_hash(content) == expected

    def test_str_and_bytes_agree(self) -> None:
        assert compute_content_hash("abc") == compute_content_hash(b"abc")

    def test_format(self) -> None:
        assert re.fullmatch(r"sha256:[0-9a-f]{64}", compute_content_hash(""))

    def test_hash_file_uses_raw_bytes(self, tmp_path: Path) -> None:
        path = tmp_path / "f.md"
        path.write_bytes(b"line\r\n")
        assert hash_file(path) == compute_content_hash(b"line\r\n")
        assert hash_file(path) != compute_content_hash("line\n")


class TestInstallPaths:
    """Deterministic type-derived locations."""

    @pytest.mark.parametrize(
        "pkg_type, expected",
        [
            (PackageType.PLAN, "plans/x.md"),
            (PackageType.RULE, ".claude/rules/x.md"),
            (PackageType.PROMPT, "prompts/x.md"),
        ],
    )
    def test_install_path(self, pkg_type: PackageType, expected: str) -> None:
        assert install_path("x", pkg_type) == expected

    def test_accepts_type_value(self) -> None:
        assert str(install_dir("rule")) == ".claude/rules"

    def test_scoped_name_keeps_scope_directory(self) -> None:
        assert install_path("@acme/deploy", PackageType.PLAN) == "plans/@acme/deploy.md"

    def test_resolve_in_project(self, tmp_path: Path) -> None:
        assert resolve_in_project(tmp_path, ".claude/rules/x.md") == tmp_path / ".claude" / "rules" / "x.md"

    @pytest.mark.parametrize("relative", ["../victim.txt", "plans/../../x.md", "/etc/passwd", "..\\x.md"])
    def test_resolve_in_project_rejects_escaping_paths(self, tmp_path: Path, relative: str) -> None:
        with pytest.raises(FileSystemError, match="escapes the project"):
            resolve_in_project(tmp_path, relative)

    def test_resolve_in_project_rejects_symlink_out(self, tmp_path: Path) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        project = tmp_path / "project"
        project.mkdir()
        (project / "plans").symlink_to(outside, target_is_directory=True)
        with pytest.raises(FileSystemError):
            resolve_in_project(project, "plans/x.md")

    def test_project_files(self, tmp_path: Path) -> None:
        assert lockfile_path(tmp_path) == tmp_path / "planmode.lock"
        assert ledger_document_path(tmp_path) == tmp_path / "CLAUDE.md"
        assert plans_dir(tmp_path) == tmp_path / "plans"
