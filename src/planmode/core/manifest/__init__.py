"""Package manifest models and the ``planmode.yaml`` parse boundary.

All public names are re-exported here so callers can write
``from planmode.core.manifest import PackageType, parse_manifest``.
"""

from planmode.core.manifest.models import (
    CATEGORIES,
    BaseManifest,
    Dependencies,
    Manifest,
    PackageType,
    PlanManifest,
    PromptManifest,
    RuleManifest,
    VariableDefinition,
    VariableType,
    VariableValue,
)
from planmode.core.manifest.validation import (
    MANIFEST_FILENAME,
    ManifestResult,
    parse_manifest,
    read_manifest,
    read_package_content,
    validate_manifest,
)

__all__ = [
    "CATEGORIES",
    "BaseManifest",
    "Dependencies",
    "MANIFEST_FILENAME",
    "Manifest",
    "ManifestResult",
    "PackageType",
    "PlanManifest",
    "PromptManifest",
    "RuleManifest",
    "VariableDefinition",
    "VariableType",
    "VariableValue",
    "parse_manifest",
    "read_manifest",
    "read_package_content",
    "validate_manifest",
]
