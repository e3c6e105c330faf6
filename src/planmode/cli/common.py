"""Helpers shared by the planmode subcommands.

The registry fetcher is taken from ``ctx.obj["fetcher"]`` when present, so
tests can pass ``obj={"fetcher": ...}`` to ``CliRunner.invoke`` instead of
reaching the network.
"""

from __future__ import annotations

import asyncio
import functools
import sys
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, TypeVar

import click

from planmode.cli.output import print_error
from planmode.config import read_config
from planmode.core.manifest import VariableDefinition, VariableType, VariableValue
from planmode.exceptions import PlanmodeError
from planmode.registry.base import PackageFetcher

T = TypeVar("T")

project_dir_option = click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project directory to operate on.",
)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine from a synchronous click command."""
    return asyncio.run(coro)


def get_fetcher(ctx: click.Context) -> PackageFetcher:
    """Return the fetcher for this invocation, creating a GitHub one if unset."""
    obj = ctx.ensure_object(dict)
    fetcher = obj.get("fetcher")
    if fetcher is None:
        from planmode.registry.github import GitHubRegistry

        fetcher = GitHubRegistry(read_config())
        obj["fetcher"] = fetcher
    return fetcher


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Print any ``PlanmodeError`` raised by *func* and exit with code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except PlanmodeError as exc:
            print_error(str(exc))
            sys.exit(1)

    return wrapper


def parse_assignments(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    """Click callback turning repeated ``--set key=value`` into a dict."""
    result: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}")
        result[key.strip()] = value
    return result


def prompt_variable(name: str, definition: VariableDefinition) -> VariableValue:
    """Ask the user for a template variable on the terminal."""
    text = definition.description or name
    if definition.type is VariableType.BOOLEAN:
        return click.confirm(text, default=bool(definition.default))
    if definition.type is VariableType.ENUM:
        return click.prompt(
            text,
            type=click.Choice(list(definition.options)),
            default=definition.default,
        )
    if definition.type is VariableType.NUMBER:
        value = click.prompt(text, type=float, default=definition.default)
        return int(value) if float(value).is_integer() else value
    return click.prompt(text, default=definition.default)
