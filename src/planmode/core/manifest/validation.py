"""Manifest parsing and validation.

``planmode.yaml`` is parsed with PyYAML and validated field by field. Every
violation is collected into a list of human-readable strings rather than
raised on the first failure, so a publisher sees all problems at once.

Only a manifest with zero errors is converted into a typed variant
(``PlanManifest``, ``RuleManifest``, ``PromptManifest``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from planmode.core.manifest.models import (
    CATEGORIES,
    Dependencies,
    Manifest,
    PackageType,
    PlanManifest,
    PromptManifest,
    RuleManifest,
    VariableDefinition,
    VariableType,
)
from planmode.core.resolver.constraints import VersionRange, parse_dep_string
from planmode.exceptions import (
    FileSystemError,
    InvalidConstraintError,
    InvalidManifestError,
)

MANIFEST_FILENAME = "planmode.yaml"

NAME_RE = re.compile(r"^(@[a-z0-9-]+/)?[a-z0-9][a-z0-9-]*\Z")
SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+\Z")
TAG_RE = re.compile(r"^[a-z0-9][a-z0-9-]*\Z")

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 200
MAX_TAGS = 10

_VARIANTS: dict[PackageType, type] = {
    PackageType.PLAN: PlanManifest,
    PackageType.RULE: RuleManifest,
    PackageType.PROMPT: PromptManifest,
}


@dataclass
class ManifestResult:
    """Outcome of parsing a manifest: a typed value or the field errors.

    Attributes:
        manifest: The typed manifest, or None if validation failed.
        errors: Every field-level error found. Empty on success.
    """

    manifest: Manifest | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.manifest is not None and not self.errors

    def unwrap(self) -> Manifest:
        """Return the manifest or raise ``InvalidManifestError``."""
        if self.manifest is None or self.errors:
            raise InvalidManifestError(self.errors)
        return self.manifest


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_manifest(
    data: dict[str, Any], require_publish_fields: bool = False
) -> list[str]:
    """Validate a raw manifest mapping.

    Args:
        data: The mapping loaded from ``planmode.yaml``.
        require_publish_fields: Also require description, author and license,
            as the registry does before accepting a package.

    Returns:
        List of validation error messages. Empty means the manifest is valid.
    """
    errors: list[str] = []

    name = data.get("name")
    if not name:
        errors.append("Missing required field: name")
    elif not isinstance(name, str) or not NAME_RE.match(name):
        errors.append(f"Invalid name {name!r}: must match {NAME_RE.pattern}")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"Name must be {MAX_NAME_LENGTH} characters or fewer")

    version = data.get("version")
    if not version:
        errors.append("Missing required field: version")
    elif not isinstance(version, str) or not SEMVER_RE.match(version):
        errors.append(f"Invalid version {version!r}: must be valid semver (X.Y.Z)")

    pkg_type = data.get("type")
    valid_types = [t.value for t in PackageType]
    if not pkg_type:
        errors.append("Missing required field: type")
    elif pkg_type not in valid_types:
        errors.append(
            f"Invalid type {pkg_type!r}: must be one of {', '.join(valid_types)}"
        )

    if require_publish_fields:
        description = data.get("description")
        if not description:
            errors.append("Missing required field: description")
        elif len(str(description)) > MAX_DESCRIPTION_LENGTH:
            errors.append(
                f"Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer"
            )
        if not data.get("author"):
            errors.append("Missing required field: author")
        if not data.get("license"):
            errors.append("Missing required field: license")

    tags = data.get("tags")
    if tags is not None:
        if not isinstance(tags, list):
            errors.append("tags must be a list")
        else:
            if len(tags) > MAX_TAGS:
                errors.append(f"Maximum {MAX_TAGS} tags allowed")
            for tag in tags:
                if not isinstance(tag, str) or not TAG_RE.match(tag):
                    errors.append(
                        f"Invalid tag {tag!r}: must be lowercase alphanumeric "
                        "with hyphens"
                    )

    category = data.get("category")
    if category is not None and category not in CATEGORIES:
        errors.append(
            f"Invalid category {category!r}: must be one of {', '.join(CATEGORIES)}"
        )

    errors.extend(_validate_dependencies(data.get("dependencies"), pkg_type))
    errors.extend(_validate_variables(data.get("variables")))

    repository = data.get("repository")
    if repository is not None and not isinstance(repository, str):
        errors.append("repository must be a string")
    models = data.get("models")
    if models is not None and not _is_str_list(models):
        errors.append("models must be a list of strings")

    content = data.get("content")
    content_file = data.get("content_file")
    if content is not None and not isinstance(content, str):
        errors.append("content must be a string")
    if content_file is not None:
        if not isinstance(content_file, str):
            errors.append("content_file must be a string")
        elif not _is_package_relative(content_file):
            errors.append(
                f"Invalid content_file {content_file!r}: must be a relative "
                "path inside the package"
            )
    has_content = bool(content)
    has_file = bool(content_file)
    if has_content and has_file:
        errors.append("Cannot specify both content and content_file")
    elif not has_content and not has_file:
        errors.append("Package must specify either content or content_file")

    return errors


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _is_package_relative(path: str) -> bool:
    parts = PurePosixPath(path.replace("\\", "/")).parts
    return bool(parts) and not path.startswith(("/", "\\")) and ".." not in parts


def _validate_dependency(key: str, dep: str) -> list[str]:
    spec = parse_dep_string(dep)
    if not NAME_RE.match(spec.name) or len(spec.name) > MAX_NAME_LENGTH:
        return [f"Invalid dependency name {spec.name!r} in dependencies.{key}"]
    try:
        VersionRange.parse(spec.constraint)
    except InvalidConstraintError:
        return [
            f"Invalid version constraint {spec.constraint!r} for dependency "
            f"{spec.name!r} in dependencies.{key}"
        ]
    return []


def _validate_dependencies(deps: Any, pkg_type: Any) -> list[str]:
    if deps is None:
        return []
    if pkg_type == PackageType.PROMPT.value:
        return ["Dependencies are not allowed for prompt type packages"]
    if not isinstance(deps, dict):
        return ["dependencies must be a mapping with 'rules' and/or 'plans'"]

    errors: list[str] = []
    for key in ("rules", "plans"):
        entries = deps.get(key)
        if entries is None:
            continue
        if not isinstance(entries, list) or not all(
            isinstance(e, str) and e for e in entries
        ):
            errors.append(f"dependencies.{key} must be a list of package names")
            continue
        for dep in entries:
            errors.extend(_validate_dependency(key, dep))
    return errors


def _validate_variables(variables: Any) -> list[str]:
    if variables is None:
        return []
    if not isinstance(variables, dict):
        return ["variables must be a mapping of name to definition"]

    errors: list[str] = []
    valid = [t.value for t in VariableType]
    for var_name, var_def in variables.items():
        if not isinstance(var_def, dict):
            errors.append(f"Variable {var_name!r} must be a mapping")
            continue
        var_type = var_def.get("type")
        if var_type not in valid:
            errors.append(
                f"Variable {var_name!r} has invalid type: must be one of "
                f"{', '.join(valid)}"
            )
        options = var_def.get("options")
        if options is not None and not _is_str_list(options):
            errors.append(f"Variable {var_name!r} options must be a list of strings")
        elif var_type == VariableType.ENUM.value and not options:
            errors.append(f"Variable {var_name!r} of type enum must have options")
        required = var_def.get("required")
        if required is not None and not isinstance(required, bool):
            errors.append(f"Variable {var_name!r} required must be true or false")
        for key in ("description", "source", "extract"):
            value = var_def.get(key)
            if value is not None and not isinstance(value, str):
                errors.append(f"Variable {var_name!r} {key} must be a string")
        if var_type == VariableType.RESOLVED.value and not var_def.get("source"):
            errors.append(f"Variable {var_name!r} of type resolved must have a source")
    return errors


# ---------------------------------------------------------------------------
# Conversion to typed variants
# ---------------------------------------------------------------------------


def variable_from_dict(raw: dict[str, Any]) -> VariableDefinition:
    """Build a ``VariableDefinition`` from its mapping.

    Registry metadata reaches here without passing ``validate_manifest``, so
    an unknown type falls back to ``string`` and non-list options are
    ignored.
    """
    try:
        var_type = VariableType(raw.get("type", VariableType.STRING.value))
    except (TypeError, ValueError):
        var_type = VariableType.STRING
    options = raw.get("options")
    source = raw.get("source")
    extract = raw.get("extract")
    return VariableDefinition(
        description=str(raw.get("description") or ""),
        type=var_type,
        options=tuple(str(o) for o in options) if isinstance(options, list) else (),
        required=raw.get("required") is True,
        default=raw.get("default"),
        source=source if isinstance(source, str) else None,
        extract=extract if isinstance(extract, str) else None,
    )


def _build_manifest(data: dict[str, Any]) -> Manifest:
    deps = data.get("dependencies") or {}
    variant = _VARIANTS[PackageType(data["type"])]
    return variant(
        name=data["name"],
        version=data["version"],
        description=str(data.get("description", "")),
        author=str(data.get("author", "")),
        license=str(data.get("license", "")),
        repository=data.get("repository"),
        models=tuple(data.get("models") or ()),
        tags=tuple(data.get("tags") or ()),
        category=data.get("category"),
        dependencies=Dependencies(
            rules=tuple(deps.get("rules") or ()),
            plans=tuple(deps.get("plans") or ()),
        ),
        variables={
            name: variable_from_dict(raw)
            for name, raw in (data.get("variables") or {}).items()
        },
        content=data.get("content"),
        content_file=data.get("content_file"),
    )


def parse_manifest(raw: str, require_publish_fields: bool = False) -> ManifestResult:
    """Parse and validate manifest YAML text.

    Never raises for bad input; YAML syntax errors are reported as a single
    field error.

    Args:
        raw: Contents of ``planmode.yaml``.
        require_publish_fields: See ``validate_manifest``.

    Returns:
        A ``ManifestResult`` holding either the typed manifest or the errors.
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        return ManifestResult(errors=[f"Invalid YAML: {exc}"])
    if not isinstance(data, dict):
        return ManifestResult(errors=["Invalid YAML: manifest must be a mapping"])

    errors = validate_manifest(data, require_publish_fields)
    if errors:
        return ManifestResult(errors=errors)
    return ManifestResult(manifest=_build_manifest(data))


def read_manifest(package_dir: Path) -> ManifestResult:
    """Read and parse ``planmode.yaml`` from a local package directory.

    Raises:
        FileSystemError: If the manifest file does not exist.
    """
    manifest_path = package_dir / MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise FileSystemError(f"No {MANIFEST_FILENAME} found in {package_dir}")
    return parse_manifest(manifest_path.read_text(encoding="utf-8"))


def read_package_content(package_dir: Path, manifest: Manifest) -> str:
    """Return the content of a local package, inline or from its file.

    Raises:
        FileSystemError: If ``content_file`` does not exist.
    """
    if manifest.content:
        return manifest.content
    if manifest.content_file:
        content_path = package_dir / manifest.content_file
        if not content_path.is_file():
            raise FileSystemError(f"Content file not found: {manifest.content_file}")
        return content_path.read_text(encoding="utf-8")
    raise InvalidManifestError(
        ["Package must specify either content or content_file"]
    )
