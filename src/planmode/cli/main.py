"""planmode CLI -- install versioned plans, rules and prompts into a project.

Entry point for the ``planmode`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    install    -- Install a package and its dependencies.
    uninstall  -- Remove an installed package.
    update     -- Move installed packages to their latest version.
    list       -- Show installed packages.
    info       -- Show registry details for a package.
    search     -- Search the registry index.
    doctor     -- Check lockfile, CLAUDE.md and files for drift.
    run        -- Render an installed prompt with its variables.
    test       -- Check a package directory before publishing.
    login      -- Store a GitHub token.
    registry   -- Configure registries for scoped packages.

Usage::

    planmode install setup-nextjs
    planmode --verbose install @acme/deploy --version "~2.1.0"
    planmode doctor --project-dir ./my-app
"""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from planmode import __version__
from planmode.cli.config_cmd import login_command, registry_group
from planmode.cli.doctor_cmd import doctor_command
from planmode.cli.install_cmd import install_command, uninstall_command, update_command
from planmode.cli.list_cmd import info_command, list_command, search_command
from planmode.cli.output import err_console
from planmode.cli.run_cmd import check_command, run_command


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="planmode")
@click.option("--verbose", is_flag=True, help="Log resolve, fetch and install steps.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """planmode: a package manager for AI plans, rules and prompts.

    Packages are installed into plans/, .claude/rules/ and prompts/,
    recorded in planmode.lock, and plans are imported from CLAUDE.md.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)


# Register all subcommands
cli.add_command(install_command)
cli.add_command(uninstall_command)
cli.add_command(update_command)
cli.add_command(list_command)
cli.add_command(info_command)
cli.add_command(search_command)
cli.add_command(doctor_command)
cli.add_command(run_command)
cli.add_command(check_command)
cli.add_command(login_command)
cli.add_command(registry_group)
