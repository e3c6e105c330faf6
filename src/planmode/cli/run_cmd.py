"""``planmode run | test`` -- use and check prompt packages locally.

Usage::

    planmode run code-review --set language=python
    planmode run code-review --no-input --json
    planmode test ./my-package

Exit Codes:
    0 -- Success, or every error-severity check passed.
    1 -- Any planmode error, or a failed check.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from planmode.cli.common import (
    handle_errors,
    parse_assignments,
    project_dir_option,
    prompt_variable,
    run_async,
)
from planmode.cli.output import print_package_check
from planmode.core.package_check import check_package
from planmode.core.runner import run_prompt


@click.command("run")
@click.argument("prompt_name", metavar="PROMPT")
@click.option(
    "--set",
    "variables",
    multiple=True,
    callback=parse_assignments,
    metavar="KEY=VALUE",
    help="Template variable value (repeatable).",
)
@click.option("--no-input", is_flag=True, help="Never prompt; fail on missing required variables.")
@click.option("--json", "as_json", is_flag=True, help="Print the rendered text and values as JSON.")
@project_dir_option
@handle_errors
def run_command(
    prompt_name: str,
    variables: dict[str, str],
    no_input: bool,
    as_json: bool,
    project_dir: Path,
) -> None:
    """Render the installed prompt PROMPT and print it."""
    interactive = not no_input and sys.stdin.isatty()
    result = run_async(run_prompt(
        project_dir,
        prompt_name,
        variables,
        prompt_variable if interactive else None,
    ))
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(result.rendered, nl=not result.rendered.endswith("\n"))


@click.command("test")
@click.argument(
    "package_dir",
    required=False,
    default=Path("."),
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--format", "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
def check_command(package_dir: Path, output_format: str) -> None:
    """Check the package in PACKAGE_DIR before publishing it."""
    result = check_package(package_dir)

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_package_check(result)

    sys.exit(0 if result.passed else 1)
