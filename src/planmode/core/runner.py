"""Render an installed prompt with its variables filled in.

A prompt is looked up locally, never in the registry:

1. ``prompts/<name>/planmode.yaml``: a package directory, whose manifest
   declares the variables and whose content is the template.
2. ``prompts/<name>.md``: the file written by ``planmode install``, used
   as-is.

``resolved`` variables are the one kind whose value comes from the network:
the variable's ``source`` URL (itself a template over the values collected
so far) is fetched as JSON and narrowed by its ``extract`` path.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from planmode.core.manifest import (
    MANIFEST_FILENAME,
    PackageType,
    VariableDefinition,
    VariableType,
    read_manifest,
    read_package_content,
)
from planmode.core.paths import PACKAGE_SUFFIX, install_dir, resolve_in_project
from planmode.core.template import PromptFn, collect_values, render
from planmode.exceptions import (
    InvalidVariableError,
    NetworkError,
    NotFoundError,
    PackageNotFoundError,
)
from planmode.registry.http_client import fetch_json, make_client

logger = logging.getLogger(__name__)

_PATH_TOKEN_RE = re.compile(r"[^.\[\]]+")


@dataclass
class PromptRun:
    """A rendered prompt and the values that went into it."""

    rendered: str
    variables: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"rendered": self.rendered, "variables": dict(self.variables)}


@dataclass
class LocalPrompt:
    content: str
    variables: dict[str, VariableDefinition] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def load_prompt(project_root: Path, name: str) -> LocalPrompt:
    """Find prompt *name* in the project.

    Raises:
        PackageNotFoundError: If neither a package directory nor an installed
            file exists for *name*.
        InvalidManifestError: If the package directory's manifest is invalid.
        FileSystemError: If *name* points outside the project, or the
            content cannot be read.
    """
    base = f"{install_dir(PackageType.PROMPT)}/{name}"
    package_dir = resolve_in_project(project_root, base)
    if (package_dir / MANIFEST_FILENAME).is_file():
        manifest = read_manifest(package_dir).unwrap()
        content = read_package_content(package_dir, manifest)
        return LocalPrompt(content, dict(manifest.variables))

    installed = resolve_in_project(project_root, base + PACKAGE_SUFFIX)
    if installed.is_file():
        return LocalPrompt(installed.read_text(encoding="utf-8"))

    raise PackageNotFoundError(
        name,
        f"Prompt '{name}' not found locally. "
        f"Install it first: planmode install {name}",
    )


# ---------------------------------------------------------------------------
# Resolved variables
# ---------------------------------------------------------------------------


def extract_path(data: Any, path: str | None) -> str:
    """Walk *data* along a dotted path such as ``items[0].name``.

    A missing key or index yields the empty string. Without a path the whole
    document is returned as text.
    """
    if not path:
        return str(data)
    current = data
    for token in _PATH_TOKEN_RE.findall(path):
        if isinstance(current, Mapping):
            current = current.get(token)
        elif isinstance(current, list) and token.isdigit() and int(token) < len(current):
            current = current[int(token)]
        else:
            current = None
        if current is None:
            return ""
    return str(current)


async def resolve_variable(
    name: str,
    definition: VariableDefinition,
    values: Mapping[str, Any],
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Fetch the value of a ``resolved`` variable.

    Raises:
        InvalidVariableError: If the variable has no ``source`` URL.
        NetworkError: If the source cannot be fetched or is not JSON.
    """
    if not definition.source:
        raise InvalidVariableError(f"Resolved variable {name!r} has no source URL")
    url = render(definition.source, values)
    logger.info("Resolving %s from %s", name, url)
    try:
        data = await fetch_json(url, client=client)
    except NotFoundError as exc:
        raise NetworkError(f"Failed to resolve variable {name!r} from {url}: {exc}") from exc
    return extract_path(data, definition.extract)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def run_prompt(
    project_root: Path,
    name: str,
    provided: Mapping[str, str] | None = None,
    prompt: PromptFn | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> PromptRun:
    """Render prompt *name* with provided, default and resolved values.

    Args:
        project_root: The project directory.
        name: Prompt package name.
        provided: Raw ``name -> value`` strings, e.g. from ``--set``.
        prompt: Asked for missing values when interactive input is allowed.
        client: HTTP client for ``resolved`` variables; one is created when
            needed and omitted.

    Raises:
        PackageNotFoundError: If the prompt is not present locally.
        MissingVariableError: If a required variable has no value.
        NetworkError: If a ``resolved`` variable cannot be fetched.
    """
    local = load_prompt(Path(project_root), name)
    if not local.variables:
        return PromptRun(local.content)

    values: dict[str, Any] = collect_values(local.variables, provided, prompt)
    pending = [
        (var_name, definition)
        for var_name, definition in local.variables.items()
        if definition.type is VariableType.RESOLVED and var_name not in values
    ]
    if pending:
        owned = client is None
        client = client or make_client()
        try:
            for var_name, definition in pending:
                values[var_name] = await resolve_variable(
                    var_name, definition, values, client=client
                )
        finally:
            if owned:
                await client.aclose()

    return PromptRun(render(local.content, values), values)
