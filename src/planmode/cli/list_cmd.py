"""``planmode list | info | search`` -- inspect installed and published packages.

Usage::

    planmode list
    planmode info setup-nextjs
    planmode search nextjs --type plan --category frontend
"""

from __future__ import annotations

from pathlib import Path

import click

from planmode.cli.common import get_fetcher, handle_errors, project_dir_option, run_async
from planmode.cli.output import console, print_package_info, print_package_list, print_search_results
from planmode.core.lockfile import LockfileStore
from planmode.core.manifest import CATEGORIES, PackageType
from planmode.exceptions import ConfigurationError


@click.command("list")
@project_dir_option
def list_command(project_dir: Path) -> None:
    """List packages recorded in planmode.lock."""
    print_package_list(LockfileStore(project_dir).read())


@click.command("info")
@click.argument("package")
@click.pass_context
@handle_errors
def info_command(ctx: click.Context, package: str) -> None:
    """Show registry details for PACKAGE."""
    metadata = run_async(get_fetcher(ctx).fetch_package_metadata(package))
    print_package_info(metadata)


@click.command("search")
@click.argument("query")
@click.option(
    "--type",
    "package_type",
    type=click.Choice([t.value for t in PackageType]),
    default=None,
    help="Only show packages of this type.",
)
@click.option(
    "--category",
    type=click.Choice(list(CATEGORIES)),
    default=None,
    help="Only show packages in this category.",
)
@click.pass_context
@handle_errors
def search_command(
    ctx: click.Context, query: str, package_type: str | None, category: str | None
) -> None:
    """Search the registry index for QUERY."""
    fetcher = get_fetcher(ctx)
    search = getattr(fetcher, "search", None)
    if search is None:
        raise ConfigurationError("The configured registry does not support search")
    results = run_async(search(query, package_type=package_type, category=category))
    print_search_results(results)
    if results:
        console.print(f"[dim]{len(results)} package(s) found[/dim]")
