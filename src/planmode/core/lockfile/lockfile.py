"""The ``Lockfile`` document: a map of package name to ``LockEntry``.

Serialized as YAML at ``<project>/planmode.lock``::

    lockfile_version: 1
    packages:
      nextjs-starter:
        version: 1.2.0
        type: plan
        source: github.com/planmode/nextjs-starter
        tag: v1.2.0
        sha: 4f2c...
        content_hash: sha256:...
        installed_to: plans/nextjs-starter.md

Determinism guarantee: ``to_yaml()`` writes packages sorted by name with a
fixed field order, so two lockfiles with the same entries are byte-identical.
"""

from __future__ import annotations

import logging
from typing import Any

import yaml

from planmode.core.lockfile.models import LockEntry

logger = logging.getLogger(__name__)


class Lockfile:
    """In-memory lockfile.

    Keys are unique package names. Entries are replaced on re-install and
    deleted on uninstall.

    Example::

        lf = Lockfile()
        lf.add_entry("deploy-checklist", LockEntry(...))
        text = lf.to_yaml()
    """

    LOCKFILE_VERSION: int = 1

    def __init__(self, packages: dict[str, LockEntry] | None = None) -> None:
        self._packages: dict[str, LockEntry] = dict(packages or {})

    # -- Entry management ---------------------------------------------------

    def add_entry(self, name: str, entry: LockEntry) -> None:
        """Add or replace the entry for *name*."""
        self._packages[name] = entry

    def remove_entry(self, name: str) -> LockEntry | None:
        """Remove and return the entry for *name*, or None if absent."""
        return self._packages.pop(name, None)

    def get_entry(self, name: str) -> LockEntry | None:
        return self._packages.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Lockfile):
            return NotImplemented
        return self._packages == other._packages

    @property
    def names(self) -> list[str]:
        """Sorted list of installed package names."""
        return sorted(self._packages)

    def items(self) -> list[tuple[str, LockEntry]]:
        """Return (name, entry) pairs sorted by name."""
        return sorted(self._packages.items())

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "lockfile_version": self.LOCKFILE_VERSION,
            "packages": {name: entry.to_dict() for name, entry in self.items()},
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Lockfile:
        """Deserialize from a parsed mapping.

        Entries that cannot be interpreted are dropped with a warning rather
        than failing the whole document.
        """
        lf = cls()
        packages = data.get("packages") or {}
        if not isinstance(packages, dict):
            logger.warning("Ignoring malformed 'packages' section in lockfile")
            return lf
        for name, raw in packages.items():
            try:
                lf._packages[str(name)] = LockEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Ignoring malformed lockfile entry %r: %s", name, exc)
        return lf

    @classmethod
    def from_yaml(cls, text: str) -> Lockfile:
        """Deserialize from YAML text.

        Raises:
            yaml.YAMLError: If the text is not valid YAML.
        """
        data = yaml.safe_load(text)
        if not isinstance(data, dict):
            return cls()
        return cls.from_dict(data)
