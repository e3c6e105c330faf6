"""Tests for Installer.install against an in-memory registry.

Validates:
    - Files land at type-derived paths, with lockfile and ledger updated.
    - Re-installing is idempotent; a locked package short-circuits.
    - Conflicting on-disk content is overwritten with a warning.
    - Dependencies are installed per edge, sequentially, with a cycle guard.
    - Failures abort the run and never leave a stale lock entry.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from planmode.core.hashing import compute_content_hash, hash_file
from planmode.core.installer import Installer, InstallOptions
from planmode.core.ledger import ImportLedger
from planmode.core.lockfile import LockfileStore
from planmode.core.manifest import PackageType
from planmode.exceptions import (
    FileSystemError,
    InvalidManifestError,
    MissingVariableError,
    NetworkError,
    PackageNotFoundError,
    VersionNotFoundError,
)


def _install(installer: Installer, name: str, **options):
    return asyncio.run(installer.install(name, InstallOptions(**options)))


# ---------------------------------------------------------------------------
# Single package
# ---------------------------------------------------------------------------


class TestInstallSingle:
    """Installing one package with no dependencies."""

    def test_plan_writes_file_lock_and_ledger(self, installer, registry, project: Path) -> None:
        registry.publish("setup-nextjs", "1.2.0", content="# Next.js setup\n")
        report = _install(installer, "setup-nextjs")

        target = project / "plans" / "setup-nextjs.md"
        assert target.read_text() == "# Next.js setup\n"
        assert report.installed_names == ["setup-nextjs"]

        entry = LockfileStore(project).get_entry("setup-nextjs")
        assert entry.version == "1.2.0"
        assert entry.type is PackageType.PLAN
        assert entry.source == "github.com/test/setup-nextjs"
        assert entry.tag == "v1.2.0"
        assert entry.sha == "abc123"
        assert entry.installed_to == "plans/setup-nextjs.md"
        assert entry.content_hash == hash_file(target)

        assert ImportLedger(project).list() == ["setup-nextjs"]

    def test_rule_goes_to_claude_rules_without_ledger(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish("typescript-strict", type="rule", content="strict\n")
        _install(installer, "typescript-strict")
        assert (project / ".claude" / "rules" / "typescript-strict.md").is_file()
        assert not (project / "CLAUDE.md").exists()

    def test_prompt_goes_to_prompts(self, installer, registry, project: Path) -> None:
        registry.publish("review", type="prompt")
        _install(installer, "review")
        entry = LockfileStore(project).get_entry("review")
        assert entry.installed_to == "prompts/review.md"
        assert (project / "prompts" / "review.md").is_file()

    def test_force_rule_overrides_placement(self, installer, registry, project: Path) -> None:
        registry.publish("setup-nextjs", type="plan")
        _install(installer, "setup-nextjs", force_rule=True)
        assert (project / ".claude" / "rules" / "setup-nextjs.md").is_file()
        assert not (project / "plans" / "setup-nextjs.md").exists()
        assert LockfileStore(project).get_entry("setup-nextjs").type is PackageType.RULE
        assert ImportLedger(project).list() == []

    def test_content_file(self, installer, registry, project: Path) -> None:
        registry.publish("docs", content_file="plan.md", file_content="# From file\n")
        _install(installer, "docs")
        assert (project / "plans" / "docs.md").read_text() == "# From file\n"

    def test_scoped_package(self, installer, registry, project: Path) -> None:
        registry.publish("@acme/deploy", content="deploy\n")
        _install(installer, "@acme/deploy")
        assert (project / "plans" / "@acme" / "deploy.md").read_text() == "deploy\n"
        assert ImportLedger(project).list() == ["@acme/deploy"]

    def test_explicit_version_constraint(self, installer, registry, project: Path) -> None:
        for v in ("1.0.0", "1.1.0", "2.0.0"):
            registry.publish("pkg", v, content=f"v{v}\n")
        _install(installer, "pkg", version="^1.0.0")
        assert LockfileStore(project).get_entry("pkg").version == "1.1.0"
        assert (project / "plans" / "pkg.md").read_text() == "v1.1.0\n"

    def test_latest_by_default(self, installer, registry, project: Path) -> None:
        for v in ("1.0.0", "2.0.0"):
            registry.publish("pkg", v)
        _install(installer, "pkg")
        assert LockfileStore(project).get_entry("pkg").version == "2.0.0"


# ---------------------------------------------------------------------------
# Idempotence and conflicts
# ---------------------------------------------------------------------------


class TestIdempotence:
    """Re-installing does no duplicate work."""

    def test_locked_package_short_circuits(self, installer, registry) -> None:
        registry.publish("pkg")
        _install(installer, "pkg")
        calls_before = len(registry.calls)

        report = _install(installer, "pkg")
        assert report.installed == []
        assert report.skipped == ["pkg"]
        assert report.warnings == []
        assert len(registry.calls) == calls_before

    def test_same_explicit_version_short_circuits(self, installer, registry) -> None:
        registry.publish("pkg", "1.0.0")
        _install(installer, "pkg", version="1.0.0")
        report = _install(installer, "pkg", version="1.0.0")
        assert report.skipped == ["pkg"]

    def test_different_version_reinstalls(self, installer, registry, project: Path) -> None:
        registry.publish("pkg", "1.0.0", content="one\n")
        registry.publish("pkg", "2.0.0", content="two\n")
        _install(installer, "pkg", version="1.0.0")
        report = _install(installer, "pkg", version="2.0.0")
        assert report.installed_names == ["pkg"]
        assert (project / "plans" / "pkg.md").read_text() == "two\n"
        assert LockfileStore(project).get_entry("pkg").version == "2.0.0"

    def test_identical_file_without_lock_entry(self, installer, registry, project: Path) -> None:
        registry.publish("pkg", content="same\n")
        (project / "plans").mkdir()
        (project / "plans" / "pkg.md").write_text("same\n")

        report = _install(installer, "pkg")
        assert report.warnings == []
        assert LockfileStore(project).get_entry("pkg").content_hash == compute_content_hash("same\n")

    def test_identical_file_is_reported_installed_not_skipped(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish("pkg", content="same\n")
        (project / "plans").mkdir()
        (project / "plans" / "pkg.md").write_text("same\n")

        report = _install(installer, "pkg")
        assert report.installed_names == ["pkg"]
        assert report.skipped == []

    def test_locked_package_with_deleted_file_is_reinstalled(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish("pkg", "1.0.0", content="one\n")
        _install(installer, "pkg")
        registry.publish("pkg", "2.0.0", content="two\n")
        (project / "plans" / "pkg.md").unlink()

        report = _install(installer, "pkg")
        assert report.installed_names == ["pkg"]
        assert report.skipped == []
        assert (project / "plans" / "pkg.md").read_text() == "one\n"
        assert LockfileStore(project).get_entry("pkg").version == "1.0.0"

    def test_reinstall_of_deleted_rule_keeps_rule_placement(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish("pkg")
        _install(installer, "pkg", force_rule=True)
        (project / ".claude" / "rules" / "pkg.md").unlink()

        _install(installer, "pkg")
        assert (project / ".claude" / "rules" / "pkg.md").is_file()
        assert not (project / "plans" / "pkg.md").exists()
        assert LockfileStore(project).get_entry("pkg").type is PackageType.RULE

    def test_ledger_not_duplicated(self, installer, registry, project: Path) -> None:
        registry.publish("pkg", "1.0.0")
        registry.publish("pkg", "1.1.0")
        _install(installer, "pkg", version="1.0.0")
        _install(installer, "pkg", version="1.1.0")
        assert (project / "CLAUDE.md").read_text().count("@plans/pkg.md") == 1


class TestConflicts:
    """Different content at the target path is overwritten with a warning."""

    def test_overwrite_records_conflict(self, installer, registry, project: Path) -> None:
        registry.publish("pkg", content="new\n")
        (project / "plans").mkdir()
        (project / "plans" / "pkg.md").write_text("hand written\n")

        report = _install(installer, "pkg")
        assert (project / "plans" / "pkg.md").read_text() == "new\n"
        assert len(report.warnings) == 1
        conflict = report.warnings[0]
        assert conflict.name == "pkg"
        assert conflict.path == "plans/pkg.md"
        assert conflict.existing_hash == compute_content_hash("hand written\n")
        assert conflict.new_hash == compute_content_hash("new\n")
        assert "plans/pkg.md" in conflict.message


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


class TestVariables:
    """Templated packages."""

    def _publish(self, registry) -> None:
        registry.publish(
            "api",
            content="Framework: {{framework}}\n{{#if auth}}Auth on\n{{/if}}",
            variables={
                "framework": {"type": "enum", "options": ["fastapi", "flask"], "required": True},
                "auth": {"type": "boolean", "default": False},
            },
        )

    def test_provided_values_render(self, installer, registry, project: Path) -> None:
        self._publish(registry)
        _install(installer, "api", variables={"framework": "flask", "auth": "true"}, no_input=True)
        assert (project / "plans" / "api.md").read_text() == "Framework: flask\nAuth on\n"

    def test_missing_required_is_fatal(self, installer, registry, project: Path) -> None:
        self._publish(registry)
        with pytest.raises(MissingVariableError, match="framework"):
            _install(installer, "api", no_input=True)
        assert not (project / "plans" / "api.md").exists()
        assert LockfileStore(project).get_entry("api") is None

    def test_prompt_used_when_input_allowed(self, installer, registry, project: Path) -> None:
        self._publish(registry)
        answers = {"framework": "fastapi", "auth": True}
        _install(installer, "api", prompt=lambda name, definition: answers[name])
        assert (project / "plans" / "api.md").read_text() == "Framework: fastapi\nAuth on\n"

    def test_prompt_ignored_with_no_input(self, installer, registry) -> None:
        self._publish(registry)
        with pytest.raises(MissingVariableError):
            _install(installer, "api", no_input=True, prompt=lambda n, d: "fastapi")

    def test_lock_hash_is_of_rendered_content(self, installer, registry, project: Path) -> None:
        self._publish(registry)
        _install(installer, "api", variables={"framework": "flask"})
        entry = LockfileStore(project).get_entry("api")
        assert entry.content_hash == compute_content_hash("Framework: flask\n")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


class TestDependencies:
    """Worklist fan-out across declared dependencies."""

    def test_installs_rules_then_plans(self, installer, registry, project: Path) -> None:
        registry.publish("strict", type="rule")
        registry.publish("base-plan")
        registry.publish("app", dependencies={"rules": ["strict"], "plans": ["base-plan"]})

        report = _install(installer, "app")
        assert report.installed_names == ["app", "strict", "base-plan"]
        assert (project / ".claude" / "rules" / "strict.md").is_file()
        assert ImportLedger(project).list() == ["app", "base-plan"]
        assert LockfileStore(project).read().names == ["app", "base-plan", "strict"]

    def test_depth_first_order(self, installer, registry) -> None:
        registry.publish("leaf")
        registry.publish("mid", dependencies={"plans": ["leaf"]})
        registry.publish("other")
        registry.publish("root", dependencies={"plans": ["mid", "other"]})
        report = _install(installer, "root")
        assert report.installed_names == ["root", "mid", "leaf", "other"]

    def test_each_edge_uses_its_own_constraint(self, installer, registry, project: Path) -> None:
        for v in ("1.0.0", "1.5.0", "2.0.0"):
            registry.publish("strict", v, type="rule")
        registry.publish("app", dependencies={"rules": ["strict@~1.0.0"]})
        _install(installer, "app")
        assert LockfileStore(project).get_entry("strict").version == "1.0.0"

    def test_unpinned_dependency_takes_latest(self, installer, registry, project: Path) -> None:
        for v in ("1.0.0", "2.0.0"):
            registry.publish("strict", v, type="rule")
        registry.publish("app", dependencies={"rules": ["strict"]})
        _install(installer, "app")
        assert LockfileStore(project).get_entry("strict").version == "2.0.0"

    def test_cycle_terminates(self, installer, registry, project: Path) -> None:
        registry.publish("a", type="rule", dependencies={"rules": ["b"]})
        registry.publish("b", type="rule", dependencies={"rules": ["a"]})
        report = _install(installer, "a")
        assert report.installed_names == ["a", "b"]
        assert LockfileStore(project).read().names == ["a", "b"]

    def test_already_locked_dependency_is_skipped(self, installer, registry) -> None:
        registry.publish("strict", type="rule")
        registry.publish("app", dependencies={"rules": ["strict"]})
        _install(installer, "strict")
        report = _install(installer, "app")
        assert report.installed_names == ["app"]
        assert report.skipped == ["strict"]

    def test_dependencies_do_not_inherit_variables_or_placement(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish("child", content="{{who}}\n", variables={"who": {"type": "string", "default": "dep"}})
        registry.publish(
            "parent",
            type="rule",
            content="{{who}}\n",
            variables={"who": {"type": "string", "required": True}},
            dependencies={"plans": ["child"]},
        )
        _install(installer, "parent", variables={"who": "me"}, force_rule=True, no_input=True)
        assert (project / ".claude" / "rules" / "parent.md").read_text() == "me\n"
        assert (project / "plans" / "child.md").read_text() == "dep\n"

    def test_scoped_dependency_with_constraint(self, installer, registry, project: Path) -> None:
        registry.publish("@acme/base", "1.0.0", type="rule")
        registry.publish("@acme/base", "2.0.0", type="rule")
        registry.publish("app", dependencies={"rules": ["@acme/base@^1.0.0"]})
        _install(installer, "app")
        assert LockfileStore(project).get_entry("@acme/base").version == "1.0.0"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    """Any failure aborts the whole run."""

    def test_unknown_package(self, installer) -> None:
        with pytest.raises(PackageNotFoundError):
            _install(installer, "nope")

    def test_unsatisfiable_version(self, installer, registry) -> None:
        registry.publish("pkg", "1.0.0")
        with pytest.raises(VersionNotFoundError):
            _install(installer, "pkg", version="^2.0.0")

    def test_invalid_manifest(self, installer, registry, project: Path) -> None:
        registry.publish("bad", raw_manifest="name: bad\nversion: 1.0.0\ntype: widget\ncontent: x\n")
        with pytest.raises(InvalidManifestError) as exc_info:
            _install(installer, "bad")
        assert any("Invalid type" in e for e in exc_info.value.field_errors)
        assert LockfileStore(project).get_entry("bad") is None

    def test_non_string_content_is_invalid(self, installer, registry, project: Path) -> None:
        registry.publish("bad", raw_manifest="name: bad\nversion: 1.0.0\ntype: plan\ncontent: 123\n")
        with pytest.raises(InvalidManifestError) as exc_info:
            _install(installer, "bad")
        assert "content must be a string" in exc_info.value.field_errors
        assert not (project / "plans").exists()

    def test_manifest_for_another_package_is_rejected(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish(
            "pkg", raw_manifest="name: other\nversion: 1.0.0\ntype: plan\ncontent: x\n"
        )
        with pytest.raises(InvalidManifestError, match="does not match requested package"):
            _install(installer, "pkg")
        assert not (project / "plans").exists()
        assert not (project / "planmode.lock").exists()

    def test_dependency_with_bad_name_is_rejected(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish(
            "app",
            raw_manifest=(
                "name: app\nversion: 1.0.0\ntype: plan\ncontent: x\n"
                "dependencies:\n  rules: ['../../escape']\n"
            ),
        )
        with pytest.raises(InvalidManifestError, match="Invalid dependency name"):
            _install(installer, "app")
        assert not (project / "planmode.lock").exists()

    def test_failed_dependency_aborts_but_keeps_completed_work(
        self, installer, registry, project: Path
    ) -> None:
        registry.publish("ok", type="rule")
        registry.publish("app", dependencies={"rules": ["ok", "missing", "never"]})
        registry.publish("never", type="rule")

        with pytest.raises(PackageNotFoundError):
            _install(installer, "app")
        assert LockfileStore(project).read().names == ["app", "ok"]
        assert not (project / ".claude" / "rules" / "never.md").exists()

    def test_network_error_propagates(self, installer, registry) -> None:
        registry.publish("pkg")
        registry.failing.add("pkg")
        with pytest.raises(NetworkError):
            _install(installer, "pkg")

    def test_failed_write_leaves_no_lock_entry(self, installer, registry, project: Path) -> None:
        registry.publish("pkg")
        # A file where the plans directory should be makes the write fail.
        (project / "plans").write_text("not a directory")

        with pytest.raises(FileSystemError):
            _install(installer, "pkg")
        assert LockfileStore(project).get_entry("pkg") is None
        assert not (project / "planmode.lock").exists()
        assert not (project / "CLAUDE.md").exists()
