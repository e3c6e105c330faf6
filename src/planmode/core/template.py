"""Template rendering for packages that declare variables.

Supports the subset of Handlebars syntax package authors use:

- ``{{name}}`` and ``{{{name}}}``: substitute a value (unknown names render
  as the empty string).
- ``{{#if name}}...{{else}}...{{/if}}`` and ``{{#unless name}}...{{/unless}}``,
  nestable.
- The ``eq`` helper inside a condition: ``{{#if (eq framework "nextjs")}}``.

Values are not HTML-escaped; package content is markdown, not HTML.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from planmode.core.manifest.models import VariableDefinition, VariableType, VariableValue
from planmode.exceptions import InvalidVariableError, MissingVariableError

logger = logging.getLogger(__name__)

PromptFn = Callable[[str, VariableDefinition], VariableValue]

_TRUE_STRINGS = frozenset({"true", "1", "yes"})

# Innermost block: its body contains no further block openers.
_BLOCK_RE = re.compile(
    r"\{\{#(?P<kind>if|unless)\s+(?P<cond>[^}]+?)\s*\}\}"
    r"(?P<body>(?:(?!\{\{#(?:if|unless)\s).)*?)"
    r"\{\{/(?P=kind)\s*\}\}",
    re.DOTALL,
)
_ELSE_RE = re.compile(r"\{\{\s*else\s*\}\}")
_VAR_RE = re.compile(r"\{\{\{\s*(?P<triple>[\w.-]+)\s*\}\}\}|\{\{\s*(?P<name>[\w.-]+)\s*\}\}")
_EQ_RE = re.compile(r"^\(\s*eq\s+(?P<left>\S+)\s+(?P<right>.+?)\s*\)$")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _truthy(value: Any) -> bool:
    return value not in (None, False, "", 0) and value != []


def _operand(token: str, values: Mapping[str, Any]) -> Any:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    if token in ("true", "false"):
        return token == "true"
    if re.fullmatch(r"-?\d+(\.\d+)?", token):
        return float(token) if "." in token else int(token)
    return values.get(token)


def _evaluate(cond: str, values: Mapping[str, Any]) -> bool:
    m = _EQ_RE.match(cond.strip())
    if m:
        left = _operand(m.group("left"), values)
        right = _operand(m.group("right"), values)
        return left == right
    return _truthy(values.get(cond.strip()))


def render(content: str, values: Mapping[str, Any]) -> str:
    """Render *content* with *values* substituted.

    Args:
        content: Template text.
        values: Variable name to value.

    Returns:
        The rendered text.
    """

    def _block(m: re.Match[str]) -> str:
        parts = _ELSE_RE.split(m.group("body"), maxsplit=1)
        then_part = parts[0]
        else_part = parts[1] if len(parts) > 1 else ""
        result = _evaluate(m.group("cond"), values)
        if m.group("kind") == "unless":
            result = not result
        return then_part if result else else_part

    previous = None
    while previous != content:
        previous = content
        content = _BLOCK_RE.sub(_block, content)

    def _var(m: re.Match[str]) -> str:
        name = m.group("triple") or m.group("name")
        if name == "else":
            return m.group(0)
        return _format(values.get(name))

    return _VAR_RE.sub(_var, content)


# ---------------------------------------------------------------------------
# Value collection
# ---------------------------------------------------------------------------


def coerce_value(name: str, raw: str, definition: VariableDefinition) -> VariableValue:
    """Convert a user-provided string to the variable's declared type.

    Raises:
        InvalidVariableError: For non-numeric ``number`` values or ``enum``
            values outside the declared options.
    """
    if definition.type is VariableType.NUMBER:
        try:
            number = float(raw)
        except ValueError:
            raise InvalidVariableError(
                f"Invalid value {raw!r} for number variable {name!r}"
            ) from None
        return int(number) if number.is_integer() else number
    if definition.type is VariableType.BOOLEAN:
        return raw.strip().lower() in _TRUE_STRINGS
    if definition.type is VariableType.ENUM:
        if definition.options and raw not in definition.options:
            raise InvalidVariableError(
                f"Invalid value {raw!r} for enum variable {name!r}. "
                f"Options: {', '.join(definition.options)}"
            )
    return raw


def collect_values(
    definitions: Mapping[str, VariableDefinition],
    provided: Mapping[str, str] | None = None,
    prompt: PromptFn | None = None,
) -> dict[str, VariableValue]:
    """Assemble the values used to render a package.

    For each declared variable, in order: a provided value wins (coerced to
    the declared type); otherwise the default is used, or offered through
    *prompt* when one is given; otherwise a required variable is obtained
    from *prompt* or the call fails. ``resolved`` variables take their value
    at run time, so they are left out unless provided explicitly.

    Raises:
        MissingVariableError: If a required variable has no value, no
            default, and there is no prompt.
        InvalidVariableError: If a provided value does not fit its type.
    """
    provided = provided or {}
    values: dict[str, VariableValue] = {}

    for name, definition in definitions.items():
        if name in provided:
            values[name] = coerce_value(name, provided[name], definition)
        elif definition.type is VariableType.RESOLVED:
            logger.debug("Leaving resolved variable %s unset", name)
            continue
        elif definition.default is not None:
            values[name] = prompt(name, definition) if prompt else definition.default
        elif definition.required:
            if prompt is None:
                raise MissingVariableError(name, definition.description)
            values[name] = prompt(name, definition)

    return values


def missing_required_variables(
    definitions: Mapping[str, VariableDefinition],
    provided: Mapping[str, str] | None = None,
) -> list[str]:
    """Names of required variables with neither a provided value nor a default."""
    provided = provided or {}
    return [
        name
        for name, definition in definitions.items()
        if definition.required
        and definition.type is not VariableType.RESOLVED
        and name not in provided
        and definition.default is None
    ]

