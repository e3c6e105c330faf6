"""Shared fixtures for lockfile tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from planmode.core.hashing import compute_content_hash
from planmode.core.lockfile import LockEntry
from planmode.core.manifest import PackageType
from planmode.core.paths import install_path


@pytest.fixture
def make_entry() -> Callable[..., LockEntry]:
    """Factory for LockEntry instances with a computed content hash."""

    def _make(
        name: str = "setup-nextjs",
        version: str = "1.0.0",
        pkg_type: PackageType = PackageType.PLAN,
        content: str = "# content\n",
    ) -> LockEntry:
        return LockEntry(
            version=version,
            type=pkg_type,
            source=f"github.com/test/{name}",
            tag=f"v{version}",
            sha="abc123",
            content_hash=compute_content_hash(content),
            installed_to=install_path(name, pkg_type),
        )

    return _make
