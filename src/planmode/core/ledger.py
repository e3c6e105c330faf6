"""Import ledger: the managed ``# Planmode`` section of ``CLAUDE.md``.

Installed plans are made active by a reference line under the section
heading::

    # Planmode
    - @plans/nextjs-starter.md
    - @plans/deploy-checklist.md

The rest of the document is free-form and belongs to the user. Every edit
here touches only the targeted line; all other bytes, including line
endings, are preserved.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from planmode.core.paths import install_path, ledger_document_path
from planmode.core.manifest.models import PackageType
from planmode.exceptions import FileSystemError

logger = logging.getLogger(__name__)

SECTION_HEADING = "# Planmode"

_REFERENCE_RE = re.compile(r"^-\s*@plans/(?P<name>.+)\.md\s*$")
_HEADING_RE = re.compile(r"^#{1,6}(\s|$)")
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+$")


def reference_line(name: str) -> str:
    """Return the ledger line for a plan, without a line ending."""
    return f"- @{install_path(name, PackageType.PLAN)}"


@dataclass(frozen=True)
class _Section:
    heading: int
    end: int  # exclusive


def _find_section(lines: list[str]) -> _Section | None:
    for i, line in enumerate(lines):
        if line.strip() == SECTION_HEADING:
            end = len(lines)
            for j in range(i + 1, len(lines)):
                if _HEADING_RE.match(lines[j]):
                    end = j
                    break
            return _Section(i, end)
    return None


def _newline_of(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    return "\n"


def _reference_name(line: str) -> str | None:
    m = _REFERENCE_RE.match(line.strip())
    return m.group("name") if m else None


class ImportLedger:
    """Deduplicated, ordered plan references in a project's ``CLAUDE.md``."""

    def __init__(self, project_root: Path) -> None:
        self.project_root = Path(project_root)

    @property
    def path(self) -> Path:
        return ledger_document_path(self.project_root)

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    def _read(self) -> str | None:
        try:
            with self.path.open(encoding="utf-8", newline="") as fh:
                return fh.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise FileSystemError(f"Failed to read {self.path}: {exc}") from exc

    def _write(self, text: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps the document's own line endings untouched.
            with self.path.open("w", encoding="utf-8", newline="") as fh:
                fh.write(text)
        except OSError as exc:
            raise FileSystemError(f"Failed to write {self.path}: {exc}") from exc

    def _read_lines(self) -> list[str] | None:
        text = self._read()
        if text is None:
            return None
        return _LINE_RE.findall(text)

    # -- Public operations ----------------------------------------------------

    def add(self, name: str) -> bool:
        """Reference plan *name* in the managed section.

        Creates the document, or appends the section to it, when needed.

        Returns:
            True if the document changed, False if the reference was
            already present.
        """
        line = reference_line(name)
        lines = self._read_lines()

        if lines is None:
            self._write(f"{SECTION_HEADING}\n{line}\n")
            logger.debug("Created %s with reference to %s", self.path, name)
            return True

        section = _find_section(lines)
        if section is None:
            text = "".join(lines)
            if not text:
                separator = ""
            elif text.endswith("\n"):
                separator = "\n"
            else:
                separator = "\n\n"
            self._write(f"{text}{separator}{SECTION_HEADING}\n{line}\n")
            return True

        body = range(section.heading + 1, section.end)
        if any(_reference_name(lines[i]) == name for i in body):
            return False

        insert_at = section.heading + 1
        for i in body:
            if _reference_name(lines[i]) is not None:
                insert_at = i + 1

        previous = lines[insert_at - 1]
        newline = _newline_of(lines[section.heading])
        if not previous.endswith("\n"):
            lines[insert_at - 1] = previous + newline
        lines.insert(insert_at, line + newline)
        self._write("".join(lines))
        return True

    def remove(self, name: str) -> bool:
        """Drop the reference to plan *name*.

        A missing document or reference is not an error.

        Returns:
            True if a line was removed.
        """
        lines = self._read_lines()
        if lines is None:
            return False
        section = _find_section(lines)
        if section is None:
            return False

        kept = [
            text
            for i, text in enumerate(lines)
            if not (
                section.heading < i < section.end
                and _reference_name(text) == name
            )
        ]
        if len(kept) == len(lines):
            return False
        self._write("".join(kept))
        return True

    def list(self) -> list[str]:
        """Return referenced plan names in document order, without duplicates.

        Lines outside the managed section, and lines inside it that are not
        plan references, are ignored.
        """
        lines = self._read_lines()
        if lines is None:
            return []
        section = _find_section(lines)
        if section is None:
            return []

        names: list[str] = []
        for i in range(section.heading + 1, section.end):
            name = _reference_name(lines[i])
            if name is not None and name not in names:
                names.append(name)
        return names

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self.list()

