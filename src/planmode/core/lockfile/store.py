"""Lockfile persistence for a single project directory.

Every mutation is a read-modify-write of the whole file with no locking:
two concurrent invocations race and the last writer wins.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from planmode.core.lockfile.lockfile import Lockfile
from planmode.core.lockfile.models import LockEntry
from planmode.core.paths import lockfile_path
from planmode.exceptions import FileSystemError

logger = logging.getLogger(__name__)


class LockfileStore:
    """Reads and writes ``planmode.lock`` under an explicit project root."""

    def __init__(self, project_root: Path) -> None:
        self.project_root = Path(project_root)

    @property
    def path(self) -> Path:
        return lockfile_path(self.project_root)

    def read(self) -> Lockfile:
        """Load the lockfile.

        A missing or unparseable file yields an empty lockfile: corruption
        is treated as "no record" so the tool stays usable.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Lockfile()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", self.path, exc)
            return Lockfile()
        try:
            return Lockfile.from_yaml(text)
        except yaml.YAMLError as exc:
            logger.warning("Ignoring unparseable lockfile %s: %s", self.path, exc)
            return Lockfile()

    def write(self, lockfile: Lockfile) -> None:
        """Overwrite the lockfile with *lockfile*.

        Raises:
            FileSystemError: If the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(lockfile.to_yaml(), encoding="utf-8")
        except OSError as exc:
            raise FileSystemError(f"Failed to write {self.path}: {exc}") from exc

    def add_entry(self, name: str, entry: LockEntry) -> None:
        lockfile = self.read()
        lockfile.add_entry(name, entry)
        self.write(lockfile)

    def remove_entry(self, name: str) -> None:
        lockfile = self.read()
        if lockfile.remove_entry(name) is not None:
            self.write(lockfile)

    def get_entry(self, name: str) -> LockEntry | None:
        return self.read().get_entry(name)

    def list_other_names(self, name: str) -> list[str]:
        """Return every installed package name other than *name*.

        The lockfile does not record dependency edges, so this is only a
        conservative stand-in for "packages that might depend on *name*".
        """
        return [other for other in self.read().names if other != name]
