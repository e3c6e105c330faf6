"""``planmode doctor`` -- check that lockfile, CLAUDE.md and files agree.

Exit Codes:
    0 -- Healthy (warnings alone do not fail).
    1 -- At least one error-severity issue.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from planmode.cli.common import project_dir_option
from planmode.cli.output import print_doctor_result
from planmode.core.doctor import run_doctor


@click.command("doctor")
@project_dir_option
@click.option(
    "--format", "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
def doctor_command(project_dir: Path, output_format: str) -> None:
    """Audit installed packages for missing files, drift and stale imports."""
    result = run_doctor(project_dir)

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_doctor_result(result)

    sys.exit(0 if result.healthy else 1)
