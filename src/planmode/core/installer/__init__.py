"""Recursive package installation with lockfile and ledger bookkeeping.

Public API::

    from planmode.core.installer import Installer, InstallOptions

    report = await Installer(project_root, fetcher).install("setup-nextjs")
"""

from planmode.core.installer.installer import Installer
from planmode.core.installer.models import (
    ContentConflict,
    InstalledPackage,
    InstallOptions,
    InstallReport,
)

__all__ = [
    "ContentConflict",
    "InstallOptions",
    "InstallReport",
    "InstalledPackage",
    "Installer",
]
