"""Project lockfile -- which version of each package is installed, and where.

- ``models``: the ``LockEntry`` record.
- ``lockfile``: the ``Lockfile`` document with deterministic YAML
  serialization.
- ``store``: ``LockfileStore``, read-modify-write persistence under a
  project root.
"""

from planmode.core.lockfile.lockfile import Lockfile
from planmode.core.lockfile.models import LockEntry
from planmode.core.lockfile.store import LockfileStore

__all__ = [
    "LockEntry",
    "Lockfile",
    "LockfileStore",
]
