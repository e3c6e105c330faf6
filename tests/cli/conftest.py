"""Shared fixtures for CLI tests.

Commands take their fetcher from ``ctx.obj``, so every invocation here runs
against the in-memory ``FakeRegistry`` from the top-level conftest.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def planmode_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ~/.planmode at a temporary directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("PLANMODE_HOME", str(home))
    monkeypatch.delenv("PLANMODE_GITHUB_TOKEN", raising=False)
    return home
