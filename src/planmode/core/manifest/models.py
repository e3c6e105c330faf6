"""Manifest data models: package types, variables, and the typed manifests.

A ``planmode.yaml`` manifest is parsed once at the boundary into one of three
frozen variants -- ``PlanManifest``, ``RuleManifest``, ``PromptManifest`` --
sharing the fields of ``BaseManifest``. Nothing downstream of the parser sees
raw dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PackageType(str, Enum):
    """The three package variants, each with its own install location.

    PLAN packages are task-scoped and are imported into ``CLAUDE.md``; RULE
    packages are permanent; PROMPT packages are single-use.
    """

    PLAN = "plan"
    RULE = "rule"
    PROMPT = "prompt"


class VariableType(str, Enum):
    """Declared type of a template variable."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    RESOLVED = "resolved"


CATEGORIES: tuple[str, ...] = (
    "frontend",
    "backend",
    "devops",
    "database",
    "testing",
    "mobile",
    "ai-ml",
    "design",
    "security",
    "other",
)

VariableValue = Union[str, int, float, bool]


# ---------------------------------------------------------------------------
# Variables and dependencies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VariableDefinition:
    """A template variable declared by a manifest.

    Attributes:
        description: Prompt text shown to the user.
        type: Declared ``VariableType``.
        options: Allowed values for ``enum`` variables.
        required: Whether installation fails without a value.
        default: Value used when none is provided.
        source: URL template for ``resolved`` variables.
        extract: Dot/bracket path into the JSON fetched from ``source``.
    """

    description: str = ""
    type: VariableType = VariableType.STRING
    options: tuple[str, ...] = ()
    required: bool = False
    default: VariableValue | None = None
    source: str | None = None
    extract: str | None = None


@dataclass(frozen=True)
class Dependencies:
    """Declared dependency strings, each ``name`` or ``name@constraint``."""

    rules: tuple[str, ...] = ()
    plans: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.rules or self.plans)

    def edges(self) -> list[tuple[str, PackageType]]:
        """Return every dependency string paired with its declared type.

        Rules come before plans, preserving declaration order in each list.
        """
        return [(dep, PackageType.RULE) for dep in self.rules] + [
            (dep, PackageType.PLAN) for dep in self.plans
        ]


# ---------------------------------------------------------------------------
# Manifest variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseManifest:
    """Fields shared by every manifest variant.

    Exactly one of ``content`` and ``content_file`` is set; the parser
    rejects manifests with both or neither.
    """

    name: str
    version: str
    description: str = ""
    author: str = ""
    license: str = ""
    repository: str | None = None
    models: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    category: str | None = None
    dependencies: Dependencies = field(default_factory=Dependencies)
    variables: dict[str, VariableDefinition] = field(default_factory=dict)
    content: str | None = None
    content_file: str | None = None

    type: PackageType = field(default=PackageType.PLAN, init=False)

    @property
    def is_templated(self) -> bool:
        return bool(self.variables)


@dataclass(frozen=True)
class PlanManifest(BaseManifest):
    """A task-scoped plan, imported into the project's ``CLAUDE.md``."""

    type: PackageType = field(default=PackageType.PLAN, init=False)


@dataclass(frozen=True)
class RuleManifest(BaseManifest):
    """A permanent rule placed under ``.claude/rules``."""

    type: PackageType = field(default=PackageType.RULE, init=False)


@dataclass(frozen=True)
class PromptManifest(BaseManifest):
    """A single-use prompt. Prompts never declare dependencies."""

    type: PackageType = field(default=PackageType.PROMPT, init=False)


Manifest = Union[PlanManifest, RuleManifest, PromptManifest]
