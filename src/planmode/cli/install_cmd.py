"""``planmode install | uninstall | update`` -- change what is installed.

Usage::

    planmode install setup-nextjs
    planmode install setup-nextjs --version "^1.2.0"
    planmode install typescript-strict --rule
    planmode install api-scaffold --set framework=fastapi --no-input
    planmode uninstall setup-nextjs
    planmode update               # every installed package
    planmode update setup-nextjs

Exit Codes:
    0 -- Success.
    1 -- Any planmode error (not found, invalid manifest, network, ...).
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from planmode.cli.common import (
    get_fetcher,
    handle_errors,
    parse_assignments,
    project_dir_option,
    prompt_variable,
    run_async,
)
from planmode.cli.output import console, print_install_report
from planmode.core.installer import Installer, InstallOptions


@click.command("install")
@click.argument("package")
@click.option("--version", "-v", "version", default=None, help="Version or constraint to install.")
@click.option("--rule", "force_rule", is_flag=True, help="Install under .claude/rules whatever the package type.")
@click.option("--no-input", is_flag=True, help="Never prompt; fail on missing required variables.")
@click.option(
    "--set",
    "variables",
    multiple=True,
    callback=parse_assignments,
    metavar="KEY=VALUE",
    help="Template variable value (repeatable).",
)
@project_dir_option
@click.pass_context
@handle_errors
def install_command(
    ctx: click.Context,
    package: str,
    version: str | None,
    force_rule: bool,
    no_input: bool,
    variables: dict[str, str],
    project_dir: Path,
) -> None:
    """Install PACKAGE and its dependencies into the project."""
    interactive = not no_input and sys.stdin.isatty()
    options = InstallOptions(
        version=version,
        force_rule=force_rule,
        no_input=no_input,
        variables=variables,
        prompt=prompt_variable if interactive else None,
    )
    installer = Installer(project_dir, get_fetcher(ctx))
    report = run_async(installer.install(package, options))
    print_install_report(report)


@click.command("uninstall")
@click.argument("package")
@project_dir_option
@click.pass_context
@handle_errors
def uninstall_command(ctx: click.Context, package: str, project_dir: Path) -> None:
    """Remove PACKAGE from the project."""
    installer = Installer(project_dir, get_fetcher(ctx))
    entry = installer.uninstall(package)
    console.print(f"[green]✓[/green] Uninstalled [bold]{package}[/bold] [dim]({entry.installed_to})[/dim]")
    # Dependency edges are not recorded, so any remaining package might need it.
    others = installer.lockfile.list_other_names(package)
    if others:
        console.print(f"[dim]Still installed: {', '.join(others)}[/dim]")


@click.command("update")
@click.argument("package", required=False)
@project_dir_option
@click.pass_context
@handle_errors
def update_command(ctx: click.Context, package: str | None, project_dir: Path) -> None:
    """Update PACKAGE, or every installed package, to the latest version."""
    installer = Installer(project_dir, get_fetcher(ctx))
    options = InstallOptions(no_input=True)

    if package:
        if run_async(installer.update(package, options)):
            entry = installer.lockfile.get_entry(package)
            version = entry.version if entry else "?"
            console.print(f"[green]✓[/green] Updated [bold]{package}[/bold] to {version}")
        else:
            console.print(f"[dim]{package} is already up to date[/dim]")
        return

    updated = run_async(installer.update_all(options))
    if updated:
        console.print(f"[green]✓[/green] Updated {len(updated)} package(s): {', '.join(updated)}")
    else:
        console.print("[dim]All packages are up to date[/dim]")
